from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class OperationOptions(BaseModel):
    """
    Base options bag. Fields are set by their wire name (``bypassDocumentValidation``)
    and handed to the collaborator by their keyword name (``bypass_document_validation``).
    """
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    @classmethod
    def wire_names(cls) -> Dict[str, str]:
        """Maps each wire name to its field name."""
        return {(info.alias or name): name for name, info in cls.model_fields.items()}

    def as_kwargs(self) -> Dict[str, Any]:
        """Only the options a test document set; the collaborator applies its own defaults."""
        return self.model_dump(exclude_unset=True)


class DeleteOptions(OperationOptions):
    collation: Optional[Dict[str, Any]] = None
    hint: Optional[Union[str, Dict[str, Any]]] = None
    comment: Optional[Any] = None
    let: Optional[Dict[str, Any]] = None


class InsertOneOptions(OperationOptions):
    bypass_document_validation: Optional[bool] = None
    comment: Optional[Any] = None


class InsertManyOptions(InsertOneOptions):
    ordered: bool = True


class ReplaceOptions(OperationOptions):
    upsert: bool = False
    bypass_document_validation: Optional[bool] = None
    collation: Optional[Dict[str, Any]] = None
    hint: Optional[Union[str, Dict[str, Any]]] = None
    comment: Optional[Any] = None
    let: Optional[Dict[str, Any]] = None


class UpdateOptions(ReplaceOptions):
    array_filters: Optional[List[Dict[str, Any]]] = None


class CountOptions(OperationOptions):
    skip: Optional[int] = None
    limit: Optional[int] = None
    collation: Optional[Dict[str, Any]] = None
    hint: Optional[Union[str, Dict[str, Any]]] = None
    comment: Optional[Any] = None
