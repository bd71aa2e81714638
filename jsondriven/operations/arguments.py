"""
Argument binding for test operations.

Each operation registers its own argument handlers once, at construction.
Names it does not recognize fall through to shared capabilities (session
lookup, options bag) and, failing those, are rejected.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type

from pydantic import ValidationError

from jsondriven.exceptions import InvalidTestShape, UnrecognizedArgument
from jsondriven.models.document import ensure_fields_valid
from jsondriven.models.options import OperationOptions

ArgumentHandler = Callable[[Any], None]


def require_document(name: str, value: Any) -> Dict[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidTestShape(f"Argument '{name}' must be a document, got {type(value).__name__}.", field=name)
    return dict(value)


def require_documents(name: str, value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        raise InvalidTestShape(f"Argument '{name}' must be an array, got {type(value).__name__}.", field=name)
    return [require_document(name, item) for item in value]


class SessionArgument:
    """Shared ``session`` argument: resolves a session name to its handle."""

    def __init__(self, context):
        self._context = context
        self.session: Any = None

    def handlers(self) -> Dict[str, ArgumentHandler]:
        return {"session": self._set_session}

    def _set_session(self, value):
        self.session = self._context.resolve_session(value)


class OptionsArgument:
    """
    Shared options arguments: every option of the operation's options bag is
    accepted by its wire name, either at the top of ``arguments`` or inside an
    ``options`` sub-document.
    """

    def __init__(self, options_model: Type[OperationOptions]):
        self.options = options_model()
        self._wire_names = options_model.wire_names()

    def handlers(self) -> Dict[str, ArgumentHandler]:
        handlers = {wire_name: self._handler_for(wire_name) for wire_name in self._wire_names}
        handlers["options"] = self._set_options
        return handlers

    def _handler_for(self, wire_name: str) -> ArgumentHandler:
        return lambda value: self.set_option(wire_name, value)

    def set_option(self, wire_name: str, value: Any):
        try:
            setattr(self.options, self._wire_names[wire_name], value)
        except ValidationError as e:
            raise InvalidTestShape(
                f"Invalid value for option '{wire_name}': {e.errors()[0].get('msg')}.", field=wire_name
            ) from e

    def _set_options(self, value):
        options = require_document("options", value)
        ensure_fields_valid(options, self._wire_names, context="options")
        for wire_name, option_value in options.items():
            self.set_option(wire_name, option_value)


class ArgumentBinder:
    """Dispatches argument names to typed handlers."""

    def __init__(self, operation: str, handlers: Mapping[str, ArgumentHandler], capabilities: Iterable = ()):
        self._operation = operation
        self._handlers = dict(handlers)
        self._shared: Dict[str, ArgumentHandler] = {}
        for capability in capabilities:
            for name, handler in capability.handlers().items():
                self._shared.setdefault(name, handler)

    def recognized_names(self) -> List[str]:
        names = list(self._handlers)
        names.extend(name for name in self._shared if name not in self._handlers)
        return names

    def lookup(self, name: str) -> Optional[ArgumentHandler]:
        return self._handlers.get(name) or self._shared.get(name)

    def bind(self, name: str, value: Any):
        handler = self.lookup(name)
        if handler is None:
            raise UnrecognizedArgument(name, self._operation)
        handler(value)

    def bind_all(self, arguments: Mapping[str, Any]):
        """Binds arguments in document order."""
        if not isinstance(arguments, Mapping):
            raise InvalidTestShape("Field 'arguments' must be a document.", field="arguments")
        for name, value in arguments.items():
            self.bind(name, value)
