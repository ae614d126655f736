"""A named state of the workflow graph."""

from __future__ import annotations

from typing import Any

from workflow_kernel.domain.permission import Permission


class Step:
    """
    Named state holding the transitions that may leave it.

    Contract: edges are declared while the workflow is assembled; at run
    time a step is only queried.  A final step allows no transitions.
    """

    def __init__(
        self,
        name: str,
        label: str | None = None,
        final: bool = False,
        permission: Permission | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.label = label or name
        self.permission = permission
        self.config = dict(config or {})
        self._final = final
        self._allowed_transitions: list[str] = []

    @property
    def final(self) -> bool:
        return self._final

    @final.setter
    def final(self, value: bool) -> None:
        self._final = bool(value)

    def allow_transition(self, transition_name: str) -> Step:
        if transition_name not in self._allowed_transitions:
            self._allowed_transitions.append(transition_name)
        return self

    def disallow_transition(self, transition_name: str) -> Step:
        if transition_name in self._allowed_transitions:
            self._allowed_transitions.remove(transition_name)
        return self

    @property
    def allowed_transitions(self) -> tuple[str, ...]:
        if self._final:
            return ()
        return tuple(self._allowed_transitions)

    def is_transition_allowed(self, transition_name: str | None) -> bool:
        if self._final:
            return False
        return transition_name in self._allowed_transitions

    def has_permission(self, permission: Permission) -> bool:
        return self.permission is not None and self.permission.equals(permission)

    def __repr__(self) -> str:
        return f"<Step {self.name} final={self._final}>"
