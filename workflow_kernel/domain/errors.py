"""
ErrorCollection -- ordered, nestable diagnostic aggregator.

Responsibility
--------------
Collects guard and action failures as ``(message, params, collection)``
entries.  Composite guards attach a child collection (the per-branch
errors) to a single aggregate entry on the parent, so one collection can
describe an arbitrarily deep failure tree.

Architecture position
---------------------
**Kernel domain layer** -- pure value container.  ZERO I/O.

Invariants enforced
-------------------
* Insertion order is preserved at every nesting level.
* Entries are never edited or removed; ``reset()`` is the only way to
  empty a collection.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, NamedTuple

from workflow_kernel.exceptions import ErrorIndexError


class ErrorEntry(NamedTuple):
    """A single recorded error: message key, template params, nested errors."""

    message: str
    params: Mapping[str, Any]
    collection: ErrorCollection | None = None


class ErrorCollection:
    """Ordered collection of ``ErrorEntry`` values."""

    def __init__(self, errors: Iterable[tuple] | None = None) -> None:
        self._errors: list[ErrorEntry] = []
        if errors is not None:
            self.add_errors(errors)

    def add_error(
        self,
        message: str,
        params: Mapping[str, Any] | None = None,
        collection: ErrorCollection | None = None,
    ) -> ErrorCollection:
        """Append one error and return self."""
        self._errors.append(ErrorEntry(message, dict(params or {}), collection))
        return self

    def add_errors(self, errors: Iterable[tuple]) -> ErrorCollection:
        """Append ``(message, params[, collection])`` items in order."""
        for error in errors:
            message, params, *rest = error
            self.add_error(message, params, rest[0] if rest else None)
        return self

    def get_error(self, index: int) -> ErrorEntry:
        """Return the entry at ``index``.

        Raises:
            ErrorIndexError: if no entry exists at ``index``.
        """
        if index < 0 or index >= len(self._errors):
            raise ErrorIndexError(index, len(self._errors))
        return self._errors[index]

    def get_errors(self) -> list[ErrorEntry]:
        return list(self._errors)

    def count_errors(self) -> int:
        return len(self._errors)

    def has_errors(self) -> bool:
        return self.count_errors() > 0

    def reset(self) -> ErrorCollection:
        """Remove all entries and return self."""
        self._errors.clear()
        return self

    def to_array(self) -> list[list[Any]]:
        """Flatten to plain nested lists, recursing into child collections."""
        return [
            [
                error.message,
                dict(error.params),
                error.collection.to_array() if error.collection is not None else None,
            ]
            for error in self._errors
        ]

    def __iter__(self) -> Iterator[ErrorEntry]:
        return iter(list(self._errors))

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        # Truthy even when empty; use has_errors().
        return True

    def __repr__(self) -> str:
        return f"<ErrorCollection errors={len(self._errors)}>"
