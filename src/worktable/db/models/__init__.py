"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from worktable.db.models.org import OrgRow
from worktable.db.models.user import MembershipRow, UserRow
from worktable.db.models.workspace import WorkspaceRow

__all__ = [
    "OrgRow",
    "UserRow",
    "MembershipRow",
    "WorkspaceRow",
]
