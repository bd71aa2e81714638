from jsondriven.core.execution import Invocation
from jsondriven.exceptions import InvalidTestShape
from jsondriven.models.options import ReplaceOptions, UpdateOptions
from jsondriven.operations.arguments import require_document
from jsondriven.operations.aspects import Aspect, AspectTable, as_int64
from jsondriven.operations.base import CollectionOperation
from jsondriven.operations.registry import default_registry


def _upserted_count(result) -> int:
    return 0 if result.upserted_id is None else 1


def update_aspects(operation: str) -> AspectTable:
    return AspectTable(operation, {
        "matchedCount": Aspect(lambda result: result.matched_count, as_int64),
        "modifiedCount": Aspect(lambda result: result.modified_count, as_int64),
        "upsertedCount": Aspect(_upserted_count, as_int64),
        "upsertedId": Aspect(lambda result: result.upserted_id),
    })


class UpdateOperation(CollectionOperation):
    """Applies ``update`` (an update document or a pipeline) to documents matching ``filter``."""

    options_model = UpdateOptions

    def __init__(self, context):
        self.filter = None
        self.update = None
        super().__init__(context)

    def argument_handlers(self):
        return {
            "filter": self._set_filter,
            "update": self._set_update,
        }

    def _set_filter(self, value):
        self.filter = require_document("filter", value)

    def _set_update(self, value):
        if isinstance(value, list):
            self.update = [require_document("update", stage) for stage in value]
        else:
            self.update = require_document("update", value)

    def invocation(self) -> Invocation:
        return Invocation(self.method, (self.filter, self.update), self.option_kwargs)

    def result_aspects(self) -> AspectTable:
        return update_aspects(self.name)


@default_registry.register("updateOne")
class UpdateOne(UpdateOperation):
    method = "update_one"


@default_registry.register("updateMany")
class UpdateMany(UpdateOperation):
    method = "update_many"


@default_registry.register("replaceOne")
class ReplaceOne(CollectionOperation):
    method = "replace_one"
    options_model = ReplaceOptions

    def __init__(self, context):
        self.filter = None
        self.replacement = None
        super().__init__(context)

    def argument_handlers(self):
        return {
            "filter": self._set_filter,
            "replacement": self._set_replacement,
        }

    def _set_filter(self, value):
        self.filter = require_document("filter", value)

    def _set_replacement(self, value):
        replacement = require_document("replacement", value)
        operators = [key for key in replacement if key.startswith("$")]
        if operators:
            raise InvalidTestShape(
                f"Replacement document must not contain update operators: {', '.join(operators)}.",
                field="replacement",
            )
        self.replacement = replacement

    def invocation(self) -> Invocation:
        return Invocation(self.method, (self.filter, self.replacement), self.option_kwargs)

    def result_aspects(self) -> AspectTable:
        return update_aspects(self.name)
