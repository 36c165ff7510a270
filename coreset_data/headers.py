"""
Item identity: dense integer IDs and the (identifier, name) header per item.

Every dataset addresses its items with the IDs ``0..n-1``. Datasets that
describe the same collection of items are reconciled by merging their headers
item by item with :func:`merge_headers`.
"""

import logging
from dataclasses import dataclass
from functools import reduce
from numbers import Integral
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .exceptions import IdentifierConflictError, NameConflictError, NoSuchEntryError, StructuralError

logger = logging.getLogger(__name__)

HeaderLike = Union['Header', Tuple[Optional[str], Optional[str]], None]


@dataclass(frozen=True)
class Header:
    """Unique identifier and display name of one item."""

    identifier: Optional[str] = None
    name: Optional[str] = None

    def __post_init__(self):
        if self.identifier is None and self.name is None:
            raise StructuralError("Header should define an identifier, a name or both.")

    def matches(self, other: 'Header') -> bool:
        """Check whether both headers denote the same item.

        Headers are compared by identifier if at least one of them has one,
        and by name otherwise.
        """
        if self.identifier is not None or other.identifier is not None:
            return self.identifier == other.identifier
        return self.name == other.name

    @property
    def label(self) -> str:
        return self.name if self.name is not None else self.identifier


def as_header(value: HeaderLike) -> Optional[Header]:
    """Convert a header or an (identifier, name) pair to a :class:`Header`."""
    if value is None or isinstance(value, Header):
        return value
    identifier, name = value
    if identifier is None and name is None:
        return None
    return Header(identifier, name)


class ItemRegistry:
    """
    Frozen ID space ``{0, ..., size-1}`` with an optional header per ID.

    Args:
        size: Number of items
        headers: Optional sequence of ``size`` headers (entries may be None)

    Raises:
        StructuralError: If the number of headers does not match the size
    """

    def __init__(self, size: int, headers: Optional[Sequence[HeaderLike]] = None):
        if size < 0:
            raise StructuralError(f"Number of items should be non-negative, got {size}.")
        self._size = size
        self._ids = frozenset(range(size))

        if headers is None:
            self._headers: Optional[Tuple[Optional[Header], ...]] = None
        else:
            if len(headers) != size:
                raise StructuralError(
                    f"Number of headers does not match number of items. Expected: {size}, actual: {len(headers)}."
                )
            converted = tuple(as_header(h) for h in headers)
            self._headers = converted if any(h is not None for h in converted) else None

    def get_size(self) -> int:
        return self._size

    def get_ids(self) -> FrozenSet[int]:
        return self._ids

    def has_headers(self) -> bool:
        return self._headers is not None

    def get_headers(self) -> Optional[List[Optional[Header]]]:
        """Copy of all headers, or None if no item has a header."""
        return None if self._headers is None else list(self._headers)

    def _check_id(self, item_id: int) -> None:
        if isinstance(item_id, bool) or not isinstance(item_id, Integral) or not 0 <= item_id < self._size:
            raise NoSuchEntryError(f"No such entry: {item_id}", {'size': self._size})

    def get_header(self, item_id: int) -> Optional[Header]:
        self._check_id(item_id)
        return None if self._headers is None else self._headers[item_id]

    def get_name(self, item_id: int) -> Optional[str]:
        header = self.get_header(item_id)
        return None if header is None else header.name

    def get_identifier(self, item_id: int) -> Optional[str]:
        header = self.get_header(item_id)
        return None if header is None else header.identifier

    def find_id(self, identifier: str) -> int:
        """Return the ID of the item with the given unique identifier."""
        if self._headers is not None:
            for item_id, header in enumerate(self._headers):
                if header is not None and header.identifier == identifier:
                    return item_id
        raise NoSuchEntryError(f"No such entry: {identifier}")


def merge_header(item_id: int, first: Optional[Header], second: Optional[Header]) -> Optional[Header]:
    """
    Merge two headers that describe the same item.

    If only one is defined it is returned. If both are defined they must
    denote the same item and must not carry different names; the header
    that has a name is kept.

    Raises:
        IdentifierConflictError: If the headers denote different items
        NameConflictError: If the headers share an identity but have different names
    """
    if first is None:
        return second
    if second is None:
        return first

    if not first.matches(second):
        raise IdentifierConflictError(
            f"Headers do not match for item {item_id}. "
            f"Got different ids {first.identifier} and {second.identifier} "
            f"(names {first.name} and {second.name}).",
            item_id, first, second
        )
    if first.name is not None and second.name is not None and first.name != second.name:
        raise NameConflictError(
            f"Headers do not match for item {item_id}. "
            f"Got same id {first.identifier} but different names {first.name} and {second.name}.",
            item_id, first, second
        )
    return first if first.name is not None else second


def _merge_header_lists(first: List[Optional[Header]], second: List[Optional[Header]]) -> List[Optional[Header]]:
    return [merge_header(i, h1, h2) for i, (h1, h2) in enumerate(zip(first, second))]


def merge_headers(*header_sets: Optional[Sequence[HeaderLike]]) -> Optional[List[Optional[Header]]]:
    """
    Merge per-item headers from several datasets of the same size.

    Undefined header sets are skipped. The result does not depend on the
    order of the arguments.

    Returns:
        The merged headers, or None if no dataset defines any header
    """
    defined = [[as_header(h) for h in headers] for headers in header_sets if headers is not None]
    if not defined:
        return None

    sizes = {len(headers) for headers in defined}
    if len(sizes) > 1:
        raise StructuralError(f"Header sets have different sizes: {sorted(sizes)}.")

    merged = reduce(_merge_header_lists, defined)
    if all(h is None for h in merged):
        return None

    logger.debug(f"Merged {len(defined)} header sets for {len(merged)} items")
    return merged


def headers_from_columns(identifiers: Iterable[Optional[str]],
                         names: Optional[Iterable[Optional[str]]] = None) -> List[Optional[Header]]:
    """Combine an identifier column and an optional name column into headers.

    Without a name column the headers carry no display name, so that a name
    supplied by another dataset for the same item is kept when merging.
    """
    identifiers = list(identifiers)
    names = [None] * len(identifiers) if names is None else list(names)
    return [as_header((identifier, name)) for identifier, name in zip(identifiers, names)]


class IdentifiedData:
    """Base for datasets addressed by the IDs of an :class:`ItemRegistry`."""

    def __init__(self, name: str, size: int, headers: Optional[Sequence[HeaderLike]] = None):
        self._dataset_name = name
        self._registry = ItemRegistry(size, headers)

    @property
    def dataset_name(self) -> str:
        return self._dataset_name

    @property
    def registry(self) -> ItemRegistry:
        return self._registry

    def get_size(self) -> int:
        return self._registry.get_size()

    def get_ids(self) -> FrozenSet[int]:
        return self._registry.get_ids()

    def has_headers(self) -> bool:
        return self._registry.has_headers()

    def get_headers(self) -> Optional[List[Optional[Header]]]:
        return self._registry.get_headers()

    def get_header(self, item_id: int) -> Optional[Header]:
        return self._registry.get_header(item_id)

    def get_name(self, item_id: int) -> Optional[str]:
        return self._registry.get_name(item_id)

    def get_identifier(self, item_id: int) -> Optional[str]:
        return self._registry.get_identifier(item_id)

    def __len__(self) -> int:
        return self.get_size()
