"""Column input-type vocabulary with per-type default and coercion rules.

Every column in a workspace table declares an ``inputType``. The registry
answers three questions for a type: what a freshly created row holds in that
column, whether the column needs an options list, and how a raw stored value
is read back. Unrecognized types resolve to the text rule so documents written
by newer clients still load.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from worktable.models.enums import InputType

logger = logging.getLogger(__name__)

PLACEHOLDER_OPTIONS: tuple[str, ...] = ("Option 1", "Option 2", "Option 3")


def _pass_through(raw: Any) -> Any:
    return "" if raw is None else raw


def _to_bool(raw: Any) -> bool:
    return raw is True or raw == "true"


@dataclass(frozen=True)
class TypeRule:
    """How cells of one input type are defaulted, rendered and coerced."""

    input_type: InputType
    default: Any
    widget: str
    requires_options: bool = False
    coerce: Callable[[Any], Any] = _pass_through

    def describe(self) -> dict:
        return {
            "inputType": self.input_type.value,
            "default": self.default,
            "widget": self.widget,
            "requiresOptions": self.requires_options,
        }


_RULES: dict[InputType, TypeRule] = {
    InputType.TEXT: TypeRule(InputType.TEXT, default="", widget="text"),
    InputType.SELECT: TypeRule(InputType.SELECT, default="", widget="select", requires_options=True),
    InputType.NUMBER: TypeRule(InputType.NUMBER, default=0, widget="number"),
    InputType.DATE: TypeRule(InputType.DATE, default="", widget="date"),
    InputType.CHECKBOX: TypeRule(InputType.CHECKBOX, default=False, widget="checkbox", coerce=_to_bool),
    InputType.TEXTAREA: TypeRule(InputType.TEXTAREA, default="", widget="textarea"),
}


def get_rule(input_type: str | None) -> TypeRule:
    """Return the rule for *input_type*, falling back to text for unknown types."""
    try:
        return _RULES[InputType(input_type)]
    except ValueError:
        logger.debug("Unknown input type %r, using text rule", input_type)
        return _RULES[InputType.TEXT]


def is_known_type(input_type: str | None) -> bool:
    return input_type in InputType._value2member_map_


def default_value(input_type: str | None) -> Any:
    """Cell value a new row gets for a column of *input_type*."""
    return get_rule(input_type).default


def requires_options(input_type: str | None) -> bool:
    return get_rule(input_type).requires_options


def coerce(input_type: str | None, raw: Any) -> Any:
    """Read a stored cell value according to the column's current type."""
    return get_rule(input_type).coerce(raw)


def list_rules() -> list[TypeRule]:
    return list(_RULES.values())
