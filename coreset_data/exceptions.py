"""
Exceptions raised while building coreset data objects.

Every construction either succeeds completely or raises one of these. The
messages name the offending row, column, item, marker or allele where that
information is available.
"""

from typing import Any, Dict, Optional


class DataError(ValueError):
    """Base exception for all invalid datasets."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class StructuralError(DataError):
    """Raised for dimension mismatches, missing headers and unparseable cells."""


class InvariantError(DataError):
    """Raised when parseable data violates a numeric or semantic invariant."""


class HeaderConflictError(InvariantError):
    """Raised when two datasets describe the same item with incompatible headers."""

    def __init__(self, message: str, item: int, first: Any, second: Any):
        super().__init__(message, {'item': item})
        self.item = item
        self.first = first
        self.second = second


class IdentifierConflictError(HeaderConflictError):
    """Headers for the same item carry different identifiers."""


class NameConflictError(HeaderConflictError):
    """Headers for the same item share an identifier but carry different names."""


class NoSuchEntryError(DataError, KeyError):
    """Raised when an item ID is outside of the dataset's ID range."""

    def __str__(self) -> str:
        return DataError.__str__(self)
