from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class Document(SQLModel, table=True):
    """A schemaless document, keyed by (collection path, id).

    Subcollections are stored as plain paths, eg. ``users/u1/favorites``.
    """

    __tablename__ = "documents"

    collection: str = Field(primary_key=True, index=True)
    doc_id: str = Field(primary_key=True)
    data: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(nullable=False, index=True)
    updated_at: datetime = Field(nullable=False)
