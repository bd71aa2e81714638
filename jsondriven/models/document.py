from typing import Any, Dict, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from jsondriven.exceptions import InvalidTestShape


def ensure_fields_valid(document: Mapping[str, Any], allowed: Iterable[str], context: str = "test document"):
    """Raises InvalidTestShape for the first field of ``document`` not in ``allowed``."""
    allowed = tuple(allowed)
    for name in document:
        if name not in allowed:
            raise InvalidTestShape(
                f"Invalid field '{name}' in {context}. Allowed fields: {', '.join(allowed)}.",
                field=name,
                allowed=allowed,
            )


class OperationDocument(BaseModel):
    """One parsed test document: operation name, arguments, expected result."""
    # Operation-specific top-level fields are checked against the operation's
    # allow-list before parsing, so anything extra here is already allowed.
    model_config = ConfigDict(extra="allow")

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    result: Any = None

    @property
    def has_result(self) -> bool:
        """An absent ``result`` means no assertion; an explicit null still asserts."""
        return "result" in self.model_fields_set

    @classmethod
    def parse(cls, document: Any) -> "OperationDocument":
        if not isinstance(document, Mapping):
            raise InvalidTestShape(f"Test document must be a document, got {type(document).__name__}.")
        try:
            return cls.model_validate(dict(document))
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error.get("loc", ())) or None
            raise InvalidTestShape(f"Invalid test document: {error.get('msg')} ({field}).", field=field) from e
