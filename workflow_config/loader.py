"""
Workflow definition loader (``workflow_config.loader``).

Responsibility
--------------
Loads YAML workflow files and parses them into typed
``workflow_config.schema`` dataclass instances.  The public runtime entry
point is ``workflow_config.get_workflows()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  definition, recorded on ``WorkflowDef.checksum``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrong shapes (e.g. a mapping where a list is expected)  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from workflow_config.schema import ActionRef, RoleDef, StepDef, TransitionDef, WorkflowDef

YAML_SUFFIXES = (".yaml", ".yml")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _as_tuple(value: Any, what: str) -> tuple:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Expected a list for {what}, got {type(value).__name__}")
    return tuple(value)


def parse_step(data: dict[str, Any]) -> StepDef:
    """Parse a ``StepDef``.  ``name`` is required."""
    return StepDef(
        name=data["name"],
        label=data.get("label", ""),
        final=bool(data.get("final", False)),
        permission=data.get("permission"),
        allowed_transitions=_as_tuple(
            data.get("allowed_transitions"), f"step '{data['name']}' allowed_transitions"
        ),
    )


def parse_action_ref(data: dict[str, Any] | str) -> ActionRef:
    """Parse an ``ActionRef``; a bare string is an action without options."""
    if isinstance(data, str):
        return ActionRef(name=data)
    options = data.get("options") or {}
    if not isinstance(options, dict):
        raise ValueError(f"Options of action '{data['name']}' must be a mapping")
    return ActionRef(name=data["name"], options=dict(options))


def parse_transition(data: dict[str, Any]) -> TransitionDef:
    """Parse a ``TransitionDef``.  ``name`` and ``to`` are required."""
    name = data["name"]
    return TransitionDef(
        name=name,
        to=data["to"],
        label=data.get("label", ""),
        permission=data.get("permission"),
        pre_conditions=_as_tuple(data.get("pre_conditions"), f"transition '{name}' pre_conditions"),
        conditions=_as_tuple(data.get("conditions"), f"transition '{name}' conditions"),
        actions=tuple(
            parse_action_ref(a)
            for a in _as_tuple(data.get("actions"), f"transition '{name}' actions")
        ),
        post_actions=tuple(
            parse_action_ref(a)
            for a in _as_tuple(data.get("post_actions"), f"transition '{name}' post_actions")
        ),
    )


def parse_role(data: dict[str, Any]) -> RoleDef:
    return RoleDef(
        name=data["name"],
        label=data.get("label", ""),
        permissions=_as_tuple(data.get("permissions"), f"role '{data['name']}' permissions"),
    )


def parse_workflow(data: dict[str, Any]) -> WorkflowDef:
    """
    Parse a ``WorkflowDef`` from the ``workflow`` mapping of a file.

    Raises:
        KeyError: if ``name``, ``provider_name`` or ``start_transition`` is
            missing.
    """
    return WorkflowDef(
        name=data["name"],
        provider_name=data["provider_name"],
        start_transition=data["start_transition"],
        label=data.get("label", ""),
        steps=tuple(parse_step(s) for s in data.get("steps") or ()),
        transitions=tuple(parse_transition(t) for t in data.get("transitions") or ()),
        roles=tuple(parse_role(r) for r in data.get("roles") or ()),
        config=dict(data.get("config") or {}),
        checksum=compute_checksum(data),
    )


def load_workflow_file(path: Path) -> list[WorkflowDef]:
    """
    Load every workflow defined in one YAML file.

    A file holds either a single ``workflow:`` mapping or a ``workflows:``
    list.
    """
    raw = load_yaml_file(path)

    if "workflows" in raw:
        entries = raw["workflows"] or []
        if not isinstance(entries, list):
            raise ValueError(f"'workflows' in {path} must be a list")
    elif "workflow" in raw:
        entries = [raw["workflow"]]
    else:
        raise ValueError(f"{path} defines no 'workflow' or 'workflows' key")

    return [parse_workflow(entry) for entry in entries]


def load_workflow_directory(directory: Path) -> list[WorkflowDef]:
    """Load all YAML files of ``directory`` in file-name order."""
    definitions: list[WorkflowDef] = []
    for path in sorted(directory.iterdir()):
        if path.is_file() and path.suffix in YAML_SUFFIXES:
            definitions.extend(load_workflow_file(path))
    return definitions


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
