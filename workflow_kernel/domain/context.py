"""Request-scoped transition data."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class Context:
    """
    Mutable data carried through one transition request.

    ``properties`` hold values produced while handling the transition (form
    input, action output) and are snapshotted into the resulting ``State``.
    ``params`` hold request parameters that are not persisted.
    """

    def __init__(
        self,
        properties: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        self._properties: dict[str, Any] = dict(properties or {})
        self._params: dict[str, Any] = dict(params or {})

    @property
    def properties(self) -> dict[str, Any]:
        """Copy of the current properties."""
        return dict(self._properties)

    def get_property(self, name: str, default: Any = None) -> Any:
        return self._properties.get(name, default)

    def set_property(self, name: str, value: Any) -> Context:
        self._properties[name] = value
        return self

    def has_property(self, name: str) -> bool:
        return name in self._properties

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._params)

    def get_param(self, name: str, default: Any = None) -> Any:
        return self._params.get(name, default)

    def set_param(self, name: str, value: Any) -> Context:
        self._params[name] = value
        return self

    def has_param(self, name: str) -> bool:
        return name in self._params

    def __repr__(self) -> str:
        return f"<Context properties={sorted(self._properties)} params={sorted(self._params)}>"
