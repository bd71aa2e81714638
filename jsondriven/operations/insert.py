from typing import Any, Dict, Mapping

from jsondriven.core.execution import Invocation
from jsondriven.exceptions import InvalidTestShape
from jsondriven.models.options import InsertManyOptions, InsertOneOptions
from jsondriven.operations.arguments import require_document, require_documents
from jsondriven.operations.aspects import Aspect, AspectTable
from jsondriven.operations.base import CollectionOperation
from jsondriven.operations.registry import default_registry


def _inserted_ids(result) -> Dict[str, Any]:
    return {str(index): inserted_id for index, inserted_id in enumerate(result.inserted_ids)}


def _expected_ids(value) -> Dict[str, Any]:
    # Expected ids are keyed by position; JSON makes the keys strings
    if isinstance(value, list):
        return {str(index): inserted_id for index, inserted_id in enumerate(value)}
    if isinstance(value, Mapping):
        return {str(index): inserted_id for index, inserted_id in value.items()}
    raise InvalidTestShape(f"Expected insertedIds must be a document or an array, got {type(value).__name__}.")


@default_registry.register("insertOne")
class InsertOne(CollectionOperation):
    method = "insert_one"
    options_model = InsertOneOptions

    def __init__(self, context):
        self.document = None
        super().__init__(context)

    def argument_handlers(self):
        return {"document": self._set_document}

    def _set_document(self, value):
        self.document = require_document("document", value)

    def invocation(self) -> Invocation:
        return Invocation(self.method, (self.document,), self.option_kwargs)

    def result_aspects(self) -> AspectTable:
        return AspectTable(self.name, {
            "insertedId": Aspect(lambda result: result.inserted_id),
        })


@default_registry.register("insertMany")
class InsertMany(CollectionOperation):
    method = "insert_many"
    options_model = InsertManyOptions

    def __init__(self, context):
        self.documents = None
        super().__init__(context)

    def argument_handlers(self):
        return {"documents": self._set_documents}

    def _set_documents(self, value):
        self.documents = require_documents("documents", value)

    def invocation(self) -> Invocation:
        return Invocation(self.method, (self.documents,), self.option_kwargs)

    def result_aspects(self) -> AspectTable:
        return AspectTable(self.name, {
            "insertedIds": Aspect(_inserted_ids, _expected_ids),
        })
