from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator


class ChangeStreamOperationType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    INVALIDATE = "invalidate"
    RENAME = "rename"
    DROP = "drop"
    DROP_DATABASE = "dropDatabase"
    CREATE = "create"
    CREATE_INDEXES = "createIndexes"
    DROP_INDEXES = "dropIndexes"
    MODIFY = "modify"
    SHARD_COLLECTION = "shardCollection"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        # Newer servers emit event types this list does not know yet
        return cls.UNKNOWN


class ChangeStreamNamespace(BaseModel):
    db: Optional[str] = None
    coll: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        if self.db is None:
            return None
        return f"{self.db}.{self.coll}" if self.coll else self.db


class ChangeStreamUpdateDescription(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    updated_fields: Dict[str, Any] = Field(default_factory=dict, alias="updatedFields")
    removed_fields: List[str] = Field(default_factory=list, alias="removedFields")
    truncated_arrays: List[Dict[str, Any]] = Field(default_factory=list, alias="truncatedArrays")


class ChangeStreamDocument(BaseModel):
    """
    Typed, read-only view over one output document of a ``$changeStream`` stage.

    The raw event is kept as ``backing_document`` so fields this view does not
    model are still reachable. Missing fields read as ``None``.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    resume_token: Optional[Dict[str, Any]] = Field(None, alias="_id")
    operation_type: ChangeStreamOperationType = Field(ChangeStreamOperationType.UNKNOWN, alias="operationType")
    cluster_time: Any = Field(None, alias="clusterTime")
    wall_time: Optional[datetime] = Field(None, alias="wallTime")
    namespace: Optional[ChangeStreamNamespace] = Field(None, alias="ns")
    rename_to: Optional[ChangeStreamNamespace] = Field(None, alias="to")
    document_key: Optional[Dict[str, Any]] = Field(None, alias="documentKey")
    full_document: Any = Field(None, alias="fullDocument")
    full_document_before_change: Any = Field(None, alias="fullDocumentBeforeChange")
    update_description: Optional[ChangeStreamUpdateDescription] = Field(None, alias="updateDescription")

    _backing_document: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @field_validator("operation_type", mode="before")
    @classmethod
    def parse_operation_type(cls, value):
        return ChangeStreamOperationType(value)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ChangeStreamDocument":
        change = cls.model_validate(dict(document))
        change._backing_document = dict(document)
        return change

    @property
    def backing_document(self) -> Dict[str, Any]:
        return self._backing_document

    @property
    def database_name(self) -> Optional[str]:
        return self.namespace.db if self.namespace else None

    @property
    def collection_name(self) -> Optional[str]:
        return self.namespace.coll if self.namespace else None
