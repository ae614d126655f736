"""Workflow roles: named bundles of permissions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from workflow_kernel.domain.permission import Permission


@dataclass(frozen=True)
class Role:
    """
    A workflow-scoped role.

    Non-goals: does not decide whether an actor holds the role.
    """

    name: str
    workflow_name: str
    label: str = ""
    permissions: frozenset[Permission] = field(default_factory=frozenset)

    @classmethod
    def create(
        cls,
        name: str,
        workflow_name: str,
        permission_ids: Iterable[str] = (),
        label: str = "",
    ) -> Role:
        return cls(
            name=name,
            workflow_name=workflow_name,
            label=label or name,
            permissions=frozenset(
                Permission.for_workflow_name(workflow_name, pid) for pid in permission_ids
            ),
        )

    @property
    def full_name(self) -> str:
        return f"{self.workflow_name}:{self.name}"

    def has_permission(self, permission: Permission) -> bool:
        return any(p.equals(permission) for p in self.permissions)

    def permission_for(self, permission_id: str) -> Permission:
        """Permission ``permission_id`` scoped to this role's workflow."""
        return Permission.for_workflow_name(self.workflow_name, permission_id)
