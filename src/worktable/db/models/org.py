"""Organization table: the tenant boundary."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from worktable.db.base import Base, TimestampMixin


class OrgRow(Base, TimestampMixin):
    __tablename__ = "orgs"

    org_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    created_by: Mapped[str] = mapped_column(String(128), nullable=False)
