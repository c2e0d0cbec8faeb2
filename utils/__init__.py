"""Shared utilities for the bucket budget API."""

# Configuration
from utils.config import AppConfig, Config, read_env_or_default

# Query builders
from utils.query import (
    BucketItemFilter,
    build_page_clause,
    build_where_clause,
    date_bounds,
)

# String utilities
from utils.strings import MAX_ID, is_slug, normalize_name, parse_positive_int, slugify

__all__ = [
    "MAX_ID",
    "AppConfig",
    "BucketItemFilter",
    "Config",
    "build_page_clause",
    "build_where_clause",
    "date_bounds",
    "is_slug",
    "normalize_name",
    "parse_positive_int",
    "read_env_or_default",
    "slugify",
]
