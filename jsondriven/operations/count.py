from typing import Any

from jsondriven.core.execution import Invocation
from jsondriven.exceptions import AssertionMismatch
from jsondriven.models.options import CountOptions
from jsondriven.operations.arguments import require_document
from jsondriven.operations.aspects import as_int64
from jsondriven.operations.base import CollectionOperation
from jsondriven.operations.registry import default_registry


@default_registry.register("countDocuments")
class CountDocuments(CollectionOperation):
    """Counts documents matching ``filter``. The expected result is a bare integer."""

    method = "count_documents"
    options_model = CountOptions

    def __init__(self, context):
        self.filter = None
        super().__init__(context)

    def argument_handlers(self):
        return {"filter": self._set_filter}

    def _set_filter(self, value):
        self.filter = require_document("filter", value)

    def invocation(self) -> Invocation:
        return Invocation(self.method, (self.filter,), self.option_kwargs)

    def check_result(self, expected: Any):
        expected = as_int64(expected)
        if self.outcome != expected:
            raise AssertionMismatch("count", expected, self.outcome)
