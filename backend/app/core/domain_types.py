"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - DocumentId wraps UUID — route params are parsed before reaching handlers
    - All valid states encoded as Enums — no raw string matching
    - RequestDescriptor is the only shape resource handlers accept

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

DocumentId = NewType("DocumentId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class SortDirection(str, Enum):
    """Order of a single sort key."""
    ASC = "asc"
    DESC = "desc"


class Difficulty(str, Enum):
    """Tour difficulty levels."""
    EASY = "easy"
    MEDIUM = "medium"
    DIFFICULT = "difficult"


class UserRole(str, Enum):
    """Account roles."""
    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


# ─── Request Shape ───────────────────────────────────────────────

@dataclass(frozen=True)
class RequestDescriptor:
    """Normalized inbound request: path params, raw query params, body."""
    params: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] = field(default_factory=dict)
