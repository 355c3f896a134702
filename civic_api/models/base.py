# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models with common fields and document conversion.
"""

from datetime import datetime
from typing import Any, Dict
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from bson import ObjectId


def generate_object_id() -> str:
    """Generate a new MongoDB ObjectId as string."""
    return str(ObjectId())


class BaseEntity(BaseModel):
    """Base entity with common fields for all stored documents.

    Python attributes are snake_case; stored documents use the camelCase
    aliases (``created_at`` is persisted as ``createdAt``).
    """
    
    model_config = ConfigDict(
        alias_generator=to_camel,
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        # Validate assignment
        validate_assignment=True
    )
    
    id: str = Field(default_factory=generate_object_id, description="Unique identifier")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.utcnow, description="Last update timestamp")
    schema_version: int = Field(default=1, description="Schema version for migrations")
    
    def to_document(self) -> Dict[str, Any]:
        """Serialise to a MongoDB document keyed by ``_id``."""
        document = self.model_dump(by_alias=True, exclude={"id"})
        document["_id"] = ObjectId(self.id)
        return document
    
    @classmethod
    def from_document(cls, document: Dict[str, Any]):
        """Build an entity from a stored document (``_id`` or ``id`` keyed)."""
        data = dict(document)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)
