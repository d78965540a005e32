"""A JSON blog service with users, groups, tagged posts and paginated listings."""

__version__ = "0.1.0"