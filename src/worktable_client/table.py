"""In-memory table state and the structural edits applied to it.

``TableState`` is the local store a client edits eagerly. Columns are kept in
display order; rows are indexed by a durable row id (stored in each row under
``_id``) with display order held in a separate sequence, so an edit addressed
to a row never lands on a different row after another row is deleted.

Every effective edit bumps ``version`` and notifies subscribers; ``dirty`` is
true until ``mark_saved`` acknowledges the version that reached the server.
Invalid requests either no-op or raise ``TableEditError`` before anything is
changed.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from typing import Any

from worktable.errors.exceptions import ValidationError
from worktable.models.enums import InputType
from worktable.models.workspace import DEFAULT_TITLE, ROW_ID_KEY
from worktable.services import schema_registry
from worktable.services.id_generator import generate_id

NEW_COLUMN_LABEL = "New column"
COPY_SUFFIX = " Copy"

Listener = Callable[["TableState"], None]


class TableEditError(ValidationError):
    """A structural edit was rejected; the state is unchanged."""


class TableState:
    """Columns, rows, title and content of one workspace, plus change tracking."""

    def __init__(self) -> None:
        self.title: str = DEFAULT_TITLE
        self.content: str = ""
        self._columns: list[dict[str, Any]] = []
        self._rows: dict[str, dict[str, Any]] = {}
        self._row_order: list[str] = []
        # Keys that must never be minted again in this document
        self._retired_keys: set[str] = set()
        self.version = 0
        self.saved_version = 0
        self._listeners: list[Listener] = []
        # False while a synchronizer waits for the server copy; edits are refused meanwhile
        self.editable = True

    # ── Read access ────────────────────────────────────────────────────────────

    @property
    def columns(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._columns)

    @property
    def column_keys(self) -> list[str]:
        return [c["key"] for c in self._columns]

    @property
    def row_ids(self) -> list[str]:
        return list(self._row_order)

    @property
    def rows(self) -> list[dict[str, Any]]:
        """Rows in display order, each including its ``_id``."""
        return [copy.deepcopy(self._rows[row_id]) for row_id in self._row_order]

    @property
    def dirty(self) -> bool:
        return self.version != self.saved_version

    def column(self, key: str) -> dict[str, Any]:
        return copy.deepcopy(self._columns[self._column_index(key)])

    def cells(self, row_id: str) -> dict[str, Any]:
        """The row's column values, without the row identifier."""
        row = self._get_row(row_id)
        return {k: copy.deepcopy(v) for k, v in row.items() if k != ROW_ID_KEY}

    def cell_value(self, row_id: str, key: str) -> Any:
        """Read a cell through the schema registry using the column's current type."""
        column = self._columns[self._column_index(key)]
        return schema_registry.coerce(column.get("inputType"), self._get_row(row_id).get(key))

    def row_id_at(self, position: int) -> str:
        if not 0 <= position < len(self._row_order):
            raise TableEditError(f"No row at position {position}", field="rows")
        return self._row_order[position]

    # ── Subscriptions ──────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every effective edit. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self.version += 1
        for listener in list(self._listeners):
            listener(self)

    def mark_saved(self, version: int) -> None:
        """Record that the state as of *version* is what the server holds."""
        self.saved_version = max(self.saved_version, version)

    # ── Whole-state replacement (never counts as an edit) ──────────────────────

    def load(self, document: Mapping[str, Any]) -> None:
        """Replace the whole state with a server document.

        Rows without an identifier (or repeating one) get a fresh one. Keys
        found in rows but not in any column are retired so a new column can
        never resurrect their stale values.
        """
        columns = [dict(c) for c in document.get("columns") or []]
        rows: dict[str, dict[str, Any]] = {}
        order: list[str] = []
        for raw in document.get("rows") or []:
            row = dict(raw)
            row_id = row.get(ROW_ID_KEY)
            if not isinstance(row_id, str) or not row_id or row_id in rows:
                row_id = generate_id("row_")
                row[ROW_ID_KEY] = row_id
            rows[row_id] = row
            order.append(row_id)

        column_keys = {c.get("key") for c in columns}
        self.title = document.get("title") or DEFAULT_TITLE
        self.content = document.get("content") or ""
        self._columns = copy.deepcopy(columns)
        self._rows = copy.deepcopy(rows)
        self._row_order = order
        self._retired_keys = {
            key for row in rows.values() for key in row
            if key != ROW_ID_KEY and key not in column_keys
        }
        self.saved_version = self.version

    def reset(self) -> None:
        """Discard everything, e.g. before loading another organization's table."""
        self.load({})
        self._retired_keys = set()

    def to_payload(self) -> dict[str, Any]:
        """Wire form sent on save: title, content, columns and rows."""
        return {
            "title": self.title,
            "content": self.content,
            "columns": self.columns,
            "rows": self.rows,
        }

    # ── Column operations ──────────────────────────────────────────────────────

    def add_column(self, label: str = NEW_COLUMN_LABEL) -> str:
        """Append a text column and back-fill every row with ``""``. Returns its key."""
        self._require_editable()
        key = self._mint_key()
        self._columns.append({"key": key, "label": label, "inputType": InputType.TEXT.value})
        for row in self._rows.values():
            row[key] = ""
        self._changed()
        return key

    def rename_column(self, key: str, label: str) -> bool:
        """Replace the label. Blank labels are ignored and return False."""
        self._require_editable()
        index = self._column_index(key)
        new_label = (label or "").strip()
        if not new_label:
            return False
        if self._columns[index].get("label") == new_label:
            return True
        self._columns[index]["label"] = new_label
        self._changed()
        return True

    def change_column_type(self, key: str, input_type: str) -> None:
        """Change the input type; existing cell values are left as they are.

        A column becoming a select without options gets placeholder options.
        """
        self._require_editable()
        index = self._column_index(key)
        if not input_type:
            raise TableEditError("Input type is required", field="inputType")
        column = self._columns[index]
        needs_options = schema_registry.requires_options(input_type) and not column.get("options")
        if column.get("inputType") == input_type and not needs_options:
            return
        column["inputType"] = input_type
        if needs_options:
            column["options"] = list(schema_registry.PLACEHOLDER_OPTIONS)
        self._changed()

    def duplicate_column(self, key: str) -> str:
        """Insert a copy right after the source with a fresh key and empty cells."""
        self._require_editable()
        index = self._column_index(key)
        clone = copy.deepcopy(self._columns[index])
        clone["key"] = self._mint_key()
        clone["label"] = f"{clone.get('label', '')}{COPY_SUFFIX}"
        self._columns.insert(index + 1, clone)
        # Cell values are not copied
        for row in self._rows.values():
            row[clone["key"]] = ""
        self._changed()
        return clone["key"]

    def delete_column(self, key: str) -> None:
        """Remove the column and its key from every row. The last column cannot be deleted."""
        self._require_editable()
        index = self._column_index(key)
        if len(self._columns) <= 1:
            raise TableEditError("Cannot delete the last column", field="columns")
        del self._columns[index]
        for row in self._rows.values():
            row.pop(key, None)
        self._retired_keys.add(key)
        self._changed()

    # ── Row operations ─────────────────────────────────────────────────────────

    def add_row(self) -> str:
        """Append a row holding each current column's default value. Returns its id."""
        self._require_editable()
        row_id = generate_id("row_")
        row: dict[str, Any] = {ROW_ID_KEY: row_id}
        for column in self._columns:
            row[column["key"]] = schema_registry.default_value(column.get("inputType"))
        self._rows[row_id] = row
        self._row_order.append(row_id)
        self._changed()
        return row_id

    def delete_row(self, row_id: str) -> None:
        self._require_editable()
        self._get_row(row_id)
        del self._rows[row_id]
        self._row_order.remove(row_id)
        self._changed()

    def delete_row_at(self, position: int) -> str:
        """Delete the row currently displayed at *position*. Returns its id."""
        row_id = self.row_id_at(position)
        self.delete_row(row_id)
        return row_id

    def edit_cell(self, row_id: str, key: str, value: Any) -> None:
        """Replace one cell value in place. Values are not validated against the type."""
        self._require_editable()
        row = self._get_row(row_id)
        self._column_index(key)
        if key in row and row[key] == value and type(row[key]) is type(value):
            return
        row[key] = value
        self._changed()

    # ── Document fields ────────────────────────────────────────────────────────

    def set_title(self, title: str) -> None:
        self._require_editable()
        if title == self.title:
            return
        self.title = title
        self._changed()

    def set_content(self, content: str) -> None:
        self._require_editable()
        if content == self.content:
            return
        self.content = content
        self._changed()

    # ── Internals ──────────────────────────────────────────────────────────────

    def _require_editable(self) -> None:
        if not self.editable:
            raise TableEditError("Table is not loaded yet", field="table")

    def _column_index(self, key: str) -> int:
        for index, column in enumerate(self._columns):
            if column.get("key") == key:
                return index
        raise TableEditError(f"Unknown column '{key}'", field="columns")

    def _get_row(self, row_id: str) -> dict[str, Any]:
        row = self._rows.get(row_id)
        if row is None:
            raise TableEditError(f"Unknown row '{row_id}'", field="rows")
        return row

    def _mint_key(self) -> str:
        taken = set(self.column_keys) | self._retired_keys
        for row in self._rows.values():
            taken.update(row)
        key = generate_id("col_")
        while key in taken:
            key = generate_id("col_")
        return key
