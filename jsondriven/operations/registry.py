import logging
from typing import Any, Callable, Dict, List, Mapping

from jsondriven.exceptions import InvalidTestShape, UnknownOperation

logger = logging.getLogger(__name__)


class OperationRegistry:
    """Maps a test document's operation name to the class that runs it."""

    def __init__(self):
        self._factories: Dict[str, Callable[..., Any]] = {}

    def register(self, name: str):
        """
        Class decorator registering a test operation under ``name``.

        Usage:
        @default_registry.register("deleteOne")
        class DeleteOne(CollectionOperation):
            ...
        """
        def decorator(operation_class):
            if name in self._factories:
                raise ValueError(f"Operation already registered: {name}")
            operation_class.name = name
            self._factories[name] = operation_class
            return operation_class
        return decorator

    def create(self, name: str, context):
        """Returns a new, unshared operation instance bound to ``context``."""
        try:
            factory = self._factories[name]
        except (KeyError, TypeError):
            raise UnknownOperation(name) from None
        logger.debug(f"Creating test operation {name}")
        return factory(context)

    def create_for(self, document: Mapping[str, Any], context):
        if not isinstance(document, Mapping) or "name" not in document:
            raise InvalidTestShape("Test document has no 'name' field.", field="name")
        return self.create(document["name"], context)

    def names(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, name) -> bool:
        return name in self._factories


default_registry = OperationRegistry()
