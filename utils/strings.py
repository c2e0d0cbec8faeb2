"""String normalization helpers shared by request models and stores."""

import re

_NON_SLUG = re.compile(r"[^a-z0-9]+")

SLUG_PATTERN = re.compile(r"^[a-z-]+$")

# Largest id SQLite can store in an INTEGER column.
MAX_ID = 2**63 - 1


def normalize_name(value: str) -> str:
    """Strip surrounding whitespace and lower-case a user-supplied name."""
    return value.strip().lower()


def slugify(value: str) -> str:
    """Turn a name into its lowercase-hyphen slug.

    Examples:
        "whats up" -> "whats-up", "Gas / Fuel" -> "gas-fuel"
    """
    return _NON_SLUG.sub("-", value.lower()).strip("-")


def is_slug(value: str) -> bool:
    """Return True if ``value`` looks like a lowercase-hyphen slug."""
    return bool(SLUG_PATTERN.match(value))


def parse_positive_int(value: str) -> int | None:
    """Parse a URL path segment as a positive integer, or return None."""
    if not (value.isascii() and value.isdigit()):
        return None
    number = int(value)
    return number if 0 < number <= MAX_ID else None
