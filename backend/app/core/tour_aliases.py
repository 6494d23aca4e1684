"""Tour Aliases — canned query presets exposed as named routes."""

from typing import Any, Mapping

TOP_CHEAP_TOURS = {
    "limit": "5",
    "sort": "-ratings_average,price",
    "fields": "name,price,ratings_average,summary,difficulty",
}


def alias_top_tours(raw_query: Mapping[str, Any]) -> dict[str, Any]:
    """Five best-rated, cheapest tours. Preset keys override the caller's."""
    return {**raw_query, **TOP_CHEAP_TOURS}
