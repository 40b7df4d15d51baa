"""Prefixed identifiers: ``<prefix><16 lowercase hex>``.

Organizations (``org_``), users (``usr_``), workspaces (``wks_``), columns
(``col_``) and rows (``row_``) all share this shape.
"""

import re
import uuid
from typing import Any

ID_HEX_LENGTH = 16


def generate_id(prefix: str) -> str:
    """Return *prefix* followed by 16 random lowercase hex digits."""
    return f"{prefix}{uuid.uuid4().hex[:ID_HEX_LENGTH]}"


def id_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}[0-9a-f]{{{ID_HEX_LENGTH}}}$")


def has_id_shape(value: Any, pattern: re.Pattern[str]) -> bool:
    return isinstance(value, str) and pattern.match(value) is not None
