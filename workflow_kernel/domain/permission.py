"""
Workflow-scoped permission identifier.

Permissions are compared by identity only.  Deciding whether an actor holds
a permission is left to the caller's authorization layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from workflow_kernel.exceptions import InvalidPermissionError

if TYPE_CHECKING:
    from workflow_kernel.domain.workflow import Workflow


class Permission:
    """Immutable ``workflow_name:permission_id`` value object."""

    __slots__ = ("_workflow_name", "_permission_id")

    def __init__(self, workflow_name: str, permission_id: str) -> None:
        self._guard_valid_permission(workflow_name, permission_id)
        self._workflow_name = workflow_name
        self._permission_id = permission_id

    @classmethod
    def for_workflow(cls, workflow: Workflow, permission_id: str) -> Permission:
        return cls.for_workflow_name(workflow.name, permission_id)

    @classmethod
    def for_workflow_name(cls, workflow_name: str, permission_id: str) -> Permission:
        return cls(workflow_name, permission_id)

    @classmethod
    def from_string(cls, permission: str) -> Permission:
        """Reconstruct a permission from ``workflow_name:permission_id``.

        Raises:
            InvalidPermissionError: if no colon is present or a part is blank.
        """
        workflow_name, sep, permission_id = permission.partition(":")
        if not sep:
            raise InvalidPermissionError(permission)
        return cls(workflow_name, permission_id)

    @property
    def workflow_name(self) -> str:
        return self._workflow_name

    @property
    def permission_id(self) -> str:
        return self._permission_id

    def equals(self, permission: Permission) -> bool:
        return str(self) == str(permission)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Permission):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        return hash(str(self))

    def __str__(self) -> str:
        return f"{self._workflow_name}:{self._permission_id}"

    def __repr__(self) -> str:
        return f"Permission({str(self)!r})"

    @staticmethod
    def _guard_valid_permission(workflow_name: str, permission_id: str) -> None:
        if not isinstance(workflow_name, str) or not workflow_name.strip():
            raise InvalidPermissionError(f"{workflow_name}:{permission_id}")
        if not isinstance(permission_id, str) or not permission_id.strip():
            raise InvalidPermissionError(f"{workflow_name}:{permission_id}")
