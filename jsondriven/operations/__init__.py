from jsondriven.operations.base import CollectionOperation, OperationPhase
from jsondriven.operations.context import OperationContext
from jsondriven.operations.registry import OperationRegistry, default_registry

# Importing the catalog registers each operation on default_registry
from jsondriven.operations import count, delete, insert, update  # noqa: F401

__all__ = [
    "CollectionOperation",
    "OperationContext",
    "OperationPhase",
    "OperationRegistry",
    "default_registry",
]
