"""Pydantic models for the workspace table document."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TITLE = "Untitled Workspace"

# Reserved row key holding the durable row identifier
ROW_ID_KEY = "_id"


class ColumnDefinition(BaseModel):
    """A typed field descriptor: ``{key, label, inputType, options?}`` on the wire."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    key: str = Field(..., min_length=1, max_length=128)
    label: str = Field("", max_length=200)
    input_type: str = Field("text", alias="inputType", min_length=1, max_length=50)
    options: list[str] | None = None

    @field_validator("key")
    @classmethod
    def _key_not_reserved(cls, value: str) -> str:
        if value == ROW_ID_KEY:
            raise ValueError(f"'{ROW_ID_KEY}' is reserved for row identifiers")
        return value

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class WorkspaceUpsert(BaseModel):
    """Body of a workspace save. Presence of required fields is checked by the service."""

    model_config = ConfigDict(populate_by_name=True)

    org_id: str | None = Field(None, alias="orgId")
    title: str | None = None
    content: str | None = None
    columns: list[Any] | None = None
    rows: list[Any] | None = None


class WorkspaceDocument(BaseModel):
    """The persisted workspace of one organization."""

    model_config = ConfigDict(populate_by_name=True)

    workspace_id: str | None = None
    org_id: str
    title: str = DEFAULT_TITLE
    content: str = ""
    columns: list[ColumnDefinition] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_wire(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"columns"})
        data["columns"] = [c.to_wire() for c in self.columns]
        return data

