"""
Workflow Kernel

A guarded state-transition engine with:
- Workflow/Step/Transition graph model
- Composable AND/OR conditions with nested error reporting
- Ordered, best-effort action execution
- Immutable state history per entity
- SQLAlchemy-backed persistence adapters
"""

__version__ = "0.1.0"
