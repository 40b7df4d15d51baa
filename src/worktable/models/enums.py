"""String enums for the workspace table and organization membership."""

from enum import StrEnum


class InputType(StrEnum):
    TEXT = "text"
    SELECT = "select"
    NUMBER = "number"
    DATE = "date"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"


class MembershipRole(StrEnum):
    OWNER = "Owner"
    MEMBER = "Member"
