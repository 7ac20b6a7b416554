"""Chainable MongoDB database and collection layer with automatic document fields."""

__version__ = "0.1.0"

__all__ = ["aggregate", "bulk", "collection", "cursor", "database", "errors", "fields"]