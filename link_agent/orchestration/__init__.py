# Orchestration module for link lifecycle management
from .bindings import LinkBindingManager, LinkNotFoundError
from .classifier import StatusCategory, classify
from .teardown import LinkTeardown, TeardownAction, UnsafeNodeStateError

__all__ = [
    "LinkBindingManager",
    "LinkNotFoundError",
    "LinkTeardown",
    "StatusCategory",
    "TeardownAction",
    "UnsafeNodeStateError",
    "classify",
]
