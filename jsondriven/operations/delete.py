from jsondriven.core.execution import Invocation
from jsondriven.models.options import DeleteOptions
from jsondriven.operations.arguments import require_document
from jsondriven.operations.aspects import Aspect, AspectTable, as_int64
from jsondriven.operations.base import CollectionOperation
from jsondriven.operations.registry import default_registry


class DeleteOperation(CollectionOperation):
    """
    Deletes documents matching ``filter``.

    A document without ``filter`` is run as-is: the collaborator receives
    ``None`` and decides whether that is an error.
    """

    options_model = DeleteOptions

    def __init__(self, context):
        self.filter = None
        super().__init__(context)

    def argument_handlers(self):
        return {"filter": self._set_filter}

    def _set_filter(self, value):
        self.filter = require_document("filter", value)

    def invocation(self) -> Invocation:
        return Invocation(self.method, (self.filter,), self.option_kwargs)

    def result_aspects(self) -> AspectTable:
        return AspectTable(self.name, {
            "deletedCount": Aspect(lambda result: result.deleted_count, as_int64),
        })


@default_registry.register("deleteOne")
class DeleteOne(DeleteOperation):
    method = "delete_one"


@default_registry.register("deleteMany")
class DeleteMany(DeleteOperation):
    method = "delete_many"
