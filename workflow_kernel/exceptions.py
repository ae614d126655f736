"""
Typed exception hierarchy for the workflow kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from WorkflowKernelError:

    WorkflowKernelError (base)
    |
    +-- WorkflowError
    |   +-- WorkflowConfigurationError
    |   |   +-- StepNotFoundError
    |   |   +-- TransitionNotFoundError
    |   |   +-- RoleNotFoundError
    |   +-- WorkflowNotFoundError
    |   +-- TransitionNotAllowedError
    |   +-- WorkflowNotStartedError
    |
    +-- HandlerStateError
    |   +-- TransitionNotValidatedError
    |   +-- TransitionInvalidError
    |
    +-- ActionFailedError
    |
    +-- TransactionStateError
    |
    +-- ValueObjectError
        +-- InvalidPermissionError
        +-- InvalidEntityIdError
        +-- ErrorIndexError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Workflow        | WORKFLOW_CONFIGURATION      | Graph is inconsistent or incomplete
                | STEP_NOT_FOUND              | Step name unknown to the workflow
                | TRANSITION_NOT_FOUND        | Transition name unknown to the workflow
                | ROLE_NOT_FOUND              | Role name unknown to the workflow
                | WORKFLOW_NOT_FOUND          | No workflow supports the entity
                | TRANSITION_NOT_ALLOWED      | Transition illegal from current step
                | WORKFLOW_NOT_STARTED        | Item transited before it was started
----------------|-----------------------------|-----------------------------------------
Handler         | TRANSITION_NOT_VALIDATED    | transit() called before validate()
                | TRANSITION_INVALID          | transit() called after failed validate()
----------------|-----------------------------|-----------------------------------------
Action          | ACTION_FAILED               | Action could not complete (recoverable)
----------------|-----------------------------|-----------------------------------------
Transaction     | TRANSACTION_STATE           | commit/rollback without begin
----------------|-----------------------------|-----------------------------------------
Value objects   | INVALID_PERMISSION          | Malformed permission string/parts
                | INVALID_ENTITY_ID           | Malformed entity id string/parts
                | ERROR_INDEX_OUT_OF_RANGE    | ErrorCollection index absent

===============================================================================
HANDLING PATTERNS
===============================================================================

Guard failures never raise; they are recorded in an ``ErrorCollection``.
``ActionFailedError`` is caught per action by the transition and recorded.
Everything else propagates to the caller:

    try:
        handler = TransitionHandler(item, workflow, "publish", ...)
    except TransitionNotAllowedError as e:
        return api_response(code=e.code, step=e.step_name)
"""


class WorkflowKernelError(Exception):
    """
    Base exception for all workflow kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "WORKFLOW_KERNEL_ERROR"


# Workflow graph and use-case sequencing


class WorkflowError(WorkflowKernelError):
    """Base exception for workflow level failures."""

    code: str = "WORKFLOW_ERROR"


class WorkflowConfigurationError(WorkflowError):
    """Workflow graph is inconsistent or incomplete."""

    code: str = "WORKFLOW_CONFIGURATION"

    def __init__(self, workflow_name: str, problems: list[str] | str):
        if isinstance(problems, str):
            problems = [problems]
        self.workflow_name = workflow_name
        self.problems = list(problems)
        super().__init__(
            f"Workflow '{workflow_name}' is misconfigured: " + "; ".join(self.problems)
        )


class StepNotFoundError(WorkflowConfigurationError):
    """Step with given name does not exist in the workflow."""

    code: str = "STEP_NOT_FOUND"

    def __init__(self, workflow_name: str, step_name: str | None):
        self.step_name = step_name
        super().__init__(workflow_name, f"step '{step_name}' not found")


class TransitionNotFoundError(WorkflowConfigurationError):
    """Transition with given name does not exist in the workflow."""

    code: str = "TRANSITION_NOT_FOUND"

    def __init__(self, workflow_name: str, transition_name: str | None):
        self.transition_name = transition_name
        super().__init__(workflow_name, f"transition '{transition_name}' not found")


class RoleNotFoundError(WorkflowConfigurationError):
    """Role with given name does not exist in the workflow."""

    code: str = "ROLE_NOT_FOUND"

    def __init__(self, workflow_name: str, role_name: str):
        self.role_name = role_name
        super().__init__(workflow_name, f"role '{role_name}' not found")


class WorkflowNotFoundError(WorkflowError):
    """No registered workflow supports the entity (or the name is unknown)."""

    code: str = "WORKFLOW_NOT_FOUND"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"No workflow found for {reference}")


class TransitionNotAllowedError(WorkflowError):
    """Requested transition is illegal for the item's current position."""

    code: str = "TRANSITION_NOT_ALLOWED"

    def __init__(
        self,
        workflow_name: str,
        transition_name: str | None,
        step_name: str | None,
        entity_id: str,
    ):
        self.workflow_name = workflow_name
        self.transition_name = transition_name
        self.step_name = step_name
        self.entity_id = entity_id
        if step_name is None:
            reason = f'workflow "{workflow_name}" not started for item "{entity_id}"'
        else:
            reason = f'transition is not allowed in step "{step_name}"'
        super().__init__(f'Not allowed to process transition "{transition_name}": {reason}')


class WorkflowNotStartedError(WorkflowError):
    """Item was asked to transit before its workflow was started."""

    code: str = "WORKFLOW_NOT_STARTED"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"Workflow not started for item {entity_id}")


# Handler sequencing


class HandlerStateError(WorkflowKernelError):
    """Transition handler used out of sequence."""

    code: str = "HANDLER_STATE_ERROR"


class TransitionNotValidatedError(HandlerStateError):
    """transit() called before validate()."""

    code: str = "TRANSITION_NOT_VALIDATED"

    def __init__(self, transition_name: str):
        self.transition_name = transition_name
        super().__init__(f"Transition '{transition_name}' was not validated so far")


class TransitionInvalidError(HandlerStateError):
    """transit() called although validate() failed."""

    code: str = "TRANSITION_INVALID"

    def __init__(self, transition_name: str):
        self.transition_name = transition_name
        super().__init__(
            f"Transition '{transition_name}' is in an invalid state and can't be processed"
        )


# Actions


class ActionFailedError(WorkflowKernelError):
    """
    An action could not complete.

    Recoverable: the transition records it as an error and keeps running the
    remaining actions.
    """

    code: str = "ACTION_FAILED"

    def __init__(self, message: str = "", details: dict | None = None):
        self.details = dict(details or {})
        super().__init__(message)


# Transactions


class TransactionStateError(WorkflowKernelError):
    """commit() or rollback() issued without an open transaction."""

    code: str = "TRANSACTION_STATE"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot {operation}: no transaction has been started")


# Value objects


class ValueObjectError(WorkflowKernelError):
    """Base exception for malformed value objects."""

    code: str = "VALUE_OBJECT_ERROR"


class InvalidPermissionError(ValueObjectError, ValueError):
    """Permission parts are blank or the string form is malformed."""

    code: str = "INVALID_PERMISSION"

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f'Invalid permission given. Expected "workflowName:permissionId", got "{value}"'
        )


class InvalidEntityIdError(ValueObjectError, ValueError):
    """Entity id parts are blank or the string form is malformed."""

    code: str = "INVALID_ENTITY_ID"

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f'Invalid entity id given. Expected "providerName::identifier", got "{value}"'
        )


class ErrorIndexError(ValueObjectError, IndexError):
    """ErrorCollection has no entry at the requested index."""

    code: str = "ERROR_INDEX_OUT_OF_RANGE"

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"Error with index {index} not set (collection holds {size})")
