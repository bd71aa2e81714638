from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from jsondriven.core.execution import CallTargets
from jsondriven.exceptions import InvalidTestShape


@dataclass(frozen=True)
class OperationContext:
    """
    Ambient collaborators injected into every test operation at construction.

    ``collection`` serves the sync call shapes and ``async_collection`` the
    async ones. ``sessions`` maps session names used by test documents to
    session handles owned by the outer test runner.
    """
    collection: Any = None
    async_collection: Any = None
    database: Any = None
    client: Any = None
    sessions: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "sessions", MappingProxyType(dict(self.sessions)))

    @property
    def targets(self) -> CallTargets:
        return CallTargets(sync=self.collection, asynchronous=self.async_collection)

    def resolve_session(self, name: Any) -> Any:
        if not isinstance(name, str):
            raise InvalidTestShape(f"Session name must be a string, got {type(name).__name__}.", field="session")
        try:
            return self.sessions[name]
        except KeyError:
            raise InvalidTestShape(
                f"Unknown session name: '{name}'.", field="session", allowed=self.sessions.keys()
            ) from None
