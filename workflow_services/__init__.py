"""
workflow_services -- Package init and public API.

Responsibility:
    Use-case orchestration over the kernel domain: the transaction-bounded
    ``TransitionHandler``, the listener hooks it drives, and the
    ``WorkflowManager`` that wires handlers to their collaborators.

Architecture position:
    Services -- orchestration over workflow_kernel.

    Dependency direction:
        workflow_services/ -> workflow_kernel/  (allowed)
        workflow_kernel/   -> workflow_services/ (FORBIDDEN)
"""

from workflow_services.listener import Listener, ListenerChain, LoggingListener
from workflow_services.manager import WorkflowManager
from workflow_services.transition_handler import TransitionHandler

__all__ = [
    "TransitionHandler",
    "Listener",
    "LoggingListener",
    "ListenerChain",
    "WorkflowManager",
]
