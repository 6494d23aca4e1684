"""Root conftest — shared test configuration."""

import os

# Route tests never touch the configured server database
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")
