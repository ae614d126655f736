"""
workflow_config -- Workflow definitions from YAML.

Responsibility:
    Single entrypoint for loading workflow definitions.  YAML files are
    parsed into frozen ``WorkflowDef`` artifacts, built into ``Workflow``
    graphs with their actions resolved through an ``ActionRegistry``, and
    integrity-checked before they are handed out.

Architecture position:
    Config layer.  Depends on workflow_kernel; never imported by it.

Failure modes:
    - ``FileNotFoundError`` -- the path does not exist.
    - ``ValueError`` / ``KeyError`` -- malformed definition files.
    - ``ExpressionError`` -- a condition expression fails validation.
    - ``WorkflowConfigurationError`` -- unknown actions or steps, duplicate
      names, or a graph failing ``check_integrity()``.

Audit relevance:
    Every successful call emits a ``WORKFLOW_CONFIG_TRACE`` record per
    workflow carrying the checksum of its source definition.
"""

from __future__ import annotations

import logging
from pathlib import Path

from workflow_config.builder import ActionRegistry, build_workflow, default_action_registry
from workflow_config.expression import ExpressionCondition, ExpressionError
from workflow_config.loader import load_workflow_directory, load_workflow_file
from workflow_config.schema import WorkflowDef
from workflow_config.settings import EngineSettings
from workflow_kernel.domain.clock import Clock
from workflow_kernel.domain.workflow import Workflow
from workflow_kernel.exceptions import WorkflowConfigurationError

_logger = logging.getLogger("workflow_kernel.config")


def get_workflows(
    path: Path | str,
    registry: ActionRegistry | None = None,
    clock: Clock | None = None,
) -> list[Workflow]:
    """Load and build every workflow defined under ``path``.

    ``path`` is a single YAML file or a directory of them (read in
    file-name order).  Workflow names must be unique across all files.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        WorkflowConfigurationError: If a workflow is defined twice or
            fails to build.
    """
    path = Path(path)
    if path.is_dir():
        definitions = load_workflow_directory(path)
    elif path.is_file():
        definitions = load_workflow_file(path)
    else:
        raise FileNotFoundError(f"Workflow definitions not found: {path}")

    registry = registry or default_action_registry()
    workflows: list[Workflow] = []
    seen: set[str] = set()

    for definition in definitions:
        if definition.name in seen:
            raise WorkflowConfigurationError(definition.name, "defined more than once")
        seen.add(definition.name)

        workflow = build_workflow(definition, registry, clock=clock)
        workflows.append(workflow)

        _logger.info(
            "WORKFLOW_CONFIG_TRACE",
            extra={
                "trace_type": "WORKFLOW_CONFIG_TRACE",
                "workflow_name": definition.name,
                "provider_name": definition.provider_name,
                "checksum": definition.checksum,
                "step_count": len(definition.steps),
                "transition_count": len(definition.transitions),
                "role_count": len(definition.roles),
            },
        )

    _logger.info(
        "workflow_definitions_loaded",
        extra={"source": str(path), "workflow_count": len(workflows)},
    )
    return workflows


__all__ = [
    "get_workflows",
    "ActionRegistry",
    "default_action_registry",
    "build_workflow",
    "ExpressionCondition",
    "ExpressionError",
    "WorkflowDef",
    "EngineSettings",
]
