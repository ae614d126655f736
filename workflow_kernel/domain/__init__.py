"""
Pure domain layer.

The workflow graph (``Workflow``, ``Step``, ``Transition``), guards,
actions, and the item/state model.  No dependencies on:
- ORM (SQLAlchemy)
- Database
- Transactions
"""

from workflow_kernel.domain.action import Action, ActionResult, CallbackAction
from workflow_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from workflow_kernel.domain.conditions import (
    AndCondition,
    CallbackCondition,
    Condition,
    ConditionCollection,
    OrCondition,
)
from workflow_kernel.domain.context import Context
from workflow_kernel.domain.entity import EntityId
from workflow_kernel.domain.errors import ErrorCollection, ErrorEntry
from workflow_kernel.domain.interfaces import (
    EntityRepository,
    Form,
    StateRepository,
    TransactionHandler,
)
from workflow_kernel.domain.item import Item
from workflow_kernel.domain.permission import Permission
from workflow_kernel.domain.role import Role
from workflow_kernel.domain.state import State
from workflow_kernel.domain.step import Step
from workflow_kernel.domain.transition import Transition
from workflow_kernel.domain.workflow import Workflow
from workflow_kernel.domain.workflow_conditions import (
    ProviderNameCondition,
    WorkflowAndCondition,
    WorkflowCondition,
    WorkflowOrCondition,
)

__all__ = [
    # Graph
    "Workflow",
    "Step",
    "Transition",
    "Role",
    "Permission",
    # Guards
    "Condition",
    "ConditionCollection",
    "AndCondition",
    "OrCondition",
    "CallbackCondition",
    "WorkflowCondition",
    "WorkflowAndCondition",
    "WorkflowOrCondition",
    "ProviderNameCondition",
    # Actions
    "Action",
    "ActionResult",
    "CallbackAction",
    # Item model
    "EntityId",
    "Item",
    "State",
    "Context",
    "ErrorCollection",
    "ErrorEntry",
    # Collaborators
    "EntityRepository",
    "StateRepository",
    "TransactionHandler",
    "Form",
    # Clock
    "Clock",
    "SystemClock",
    "DeterministicClock",
]
