"""Base model for every entity persisted in the document store."""

from __future__ import annotations

from typing import Any, Self

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A pydantic model stored as one MongoDB document.

    Field aliases are the stored key names; ``_id`` is exposed as ``id``.
    Entities carry their own identifier, so helpers never have to look it
    up by field name.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: ObjectId | None = Field(default=None, alias="_id")

    def document_id(self) -> ObjectId:
        """Return the identifier assigned by the store.

        :raises ValueError: If the entity has not been persisted yet
        """
        if self.id is None:
            msg = f"{type(self).__name__} has no identifier yet"
            raise ValueError(msg)
        return self.id

    def to_document(self) -> dict[str, Any]:
        """Serialize into the stored representation.

        Unset identifiers are dropped so the store assigns one.
        """
        data = self.model_dump(by_alias=True)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Self:
        """Build the entity from a stored document."""
        return cls.model_validate(document)
