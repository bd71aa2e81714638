from jsondriven.models.change_stream import ChangeStreamDocument, ChangeStreamOperationType
from jsondriven.models.document import OperationDocument, ensure_fields_valid
from jsondriven.models.results import ValidationResult

__all__ = [
    "ChangeStreamDocument",
    "ChangeStreamOperationType",
    "OperationDocument",
    "ValidationResult",
    "ensure_fields_valid",
]
