"""Declarative, document-driven test interpreter for collection operations."""

from jsondriven.core.cancellation import CancellationToken
from jsondriven.core.execution import ExecutionMode
from jsondriven.operations import CollectionOperation, OperationContext, OperationRegistry, default_registry
from jsondriven.runner import DocumentRunner

__all__ = [
    "CancellationToken",
    "CollectionOperation",
    "DocumentRunner",
    "ExecutionMode",
    "OperationContext",
    "OperationRegistry",
    "default_registry",
]
