"""
Workflow definition schema.

Defines the human-authored, reviewable source artifact for a workflow.
YAML files are parsed into these types by the loader and turned into live
``Workflow`` graphs by the builder.

Key distinction:
  WorkflowDef = source artifact (declarative data, no executable logic)
  Workflow    = runtime graph (steps, transitions, bound actions)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Graph elements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepDef:
    """A named step and the transitions allowed to leave it."""

    name: str
    label: str = ""
    final: bool = False
    permission: str | None = None  # permission id, scoped to the workflow
    allowed_transitions: tuple[str, ...] = ()


@dataclass(frozen=True)
class ActionRef:
    """Reference to a registered action factory, with its options."""

    name: str
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransitionDef:
    """A transition and its guards and actions.

    ``pre_conditions`` and ``conditions`` are restricted expressions (see
    ``workflow_config.expression``).
    """

    name: str
    to: str
    label: str = ""
    permission: str | None = None
    pre_conditions: tuple[str, ...] = ()
    conditions: tuple[str, ...] = ()
    actions: tuple[ActionRef, ...] = ()
    post_actions: tuple[ActionRef, ...] = ()


@dataclass(frozen=True)
class RoleDef:
    """A role and the permission ids it grants."""

    name: str
    label: str = ""
    permissions: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkflowDef:
    """Complete definition of one workflow."""

    name: str
    provider_name: str
    start_transition: str
    label: str = ""
    steps: tuple[StepDef, ...] = ()
    transitions: tuple[TransitionDef, ...] = ()
    roles: tuple[RoleDef, ...] = ()
    config: dict[str, Any] = field(default_factory=dict)
    checksum: str = ""
