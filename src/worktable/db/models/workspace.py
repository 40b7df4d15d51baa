"""Workspace table: one dynamic-schema table document per organization."""

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from worktable.db.base import Base, TimestampMixin


class WorkspaceRow(Base, TimestampMixin):
    __tablename__ = "workspaces"

    workspace_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    # Unique: the storage layer enforces one document per organization
    org_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("orgs.org_id"), nullable=False, unique=True, index=True
    )
    created_by: Mapped[str] = mapped_column(String(128), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="Untitled Workspace")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # List of column definition dicts: {key, label, inputType, options?}
    columns: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    # List of row dicts keyed by column key, plus the reserved "_id"
    rows: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
