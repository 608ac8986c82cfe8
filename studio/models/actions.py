"""Action models: the declarative edit instructions the executor understands."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

import pydantic
from pydantic import AliasChoices, BaseModel, Field, TypeAdapter

from studio.errors import UnknownActionError, ValidationError


class _ActionBase(BaseModel):
    """Fields shared by every action. Unknown keys from producers are ignored."""

    model_config = {"extra": "ignore", "frozen": True}

    label: str | None = None


class UpdateAction(_ActionBase):
    """Write `value` at a dotted path."""

    type: Literal["update"] = "update"
    path: str = Field(min_length=1)
    value: Any


class UpdateItemAction(_ActionBase):
    """Shallow-merge `updates` into the array element at `index`."""

    type: Literal["update_item"] = "update_item"
    path: str = Field(min_length=1)
    index: int
    updates: dict[str, Any]


class AddItemAction(_ActionBase):
    """Append `value` to the array at `path`."""

    type: Literal["add_item"] = "add_item"
    path: str = Field(min_length=1)
    value: dict[str, Any]


class DeleteItemAction(_ActionBase):
    """Remove the array element at `index`."""

    type: Literal["delete_item"] = "delete_item"
    path: str = Field(min_length=1)
    index: int


class ApplyPresetAction(_ActionBase):
    """Apply a named theme preset."""

    type: Literal["apply_preset"] = "apply_preset"
    preset_id: str = Field(validation_alias=AliasChoices("preset_id", "preset", "presetId"))


class UpdateThemeAction(_ActionBase):
    """Set primary and/or secondary theme colors."""

    type: Literal["update_theme"] = "update_theme"
    primary: str | None = None
    secondary: str | None = None


class GenerateSectionAction(_ActionBase):
    """Shallow-merge generated `data` into a whole section."""

    type: Literal["generate_section"] = "generate_section"
    section: str = Field(min_length=1)
    data: dict[str, Any]


class ToggleSectionAction(_ActionBase):
    """Show or hide a section."""

    type: Literal["toggle_section"] = "toggle_section"
    section: str = Field(min_length=1)
    enabled: bool


class UpdateFieldAction(_ActionBase):
    """Legacy form of `update`: writes `section.field`."""

    type: Literal["update_field"] = "update_field"
    section: str = Field(min_length=1)
    field: str = Field(min_length=1)
    value: Any


class UpdateButtonAction(_ActionBase):
    """Legacy: shallow-merge `updates` into the button object at `section.button`."""

    type: Literal["update_button"] = "update_button"
    section: str = Field(min_length=1)
    button: str = Field(min_length=1)
    updates: dict[str, Any]


Action = Annotated[
    Union[
        UpdateAction,
        UpdateItemAction,
        AddItemAction,
        DeleteItemAction,
        ApplyPresetAction,
        UpdateThemeAction,
        GenerateSectionAction,
        ToggleSectionAction,
        UpdateFieldAction,
        UpdateButtonAction,
    ],
    Field(discriminator="type"),
]

ACTION_MODELS: dict[str, type[_ActionBase]] = {
    "update": UpdateAction,
    "update_item": UpdateItemAction,
    "add_item": AddItemAction,
    "delete_item": DeleteItemAction,
    "apply_preset": ApplyPresetAction,
    "update_theme": UpdateThemeAction,
    "generate_section": GenerateSectionAction,
    "toggle_section": ToggleSectionAction,
    "update_field": UpdateFieldAction,
    "update_button": UpdateButtonAction,
}

ACTION_TYPES: set[str] = set(ACTION_MODELS)

_ADAPTER: TypeAdapter[Any] = TypeAdapter(Action)


def parse_action(raw: Any) -> Any:
    """
    Turn a raw action dict into its Action model.

    Raises UnknownActionError for an unrecognized `type` and ValidationError
    for anything else that does not match the variant's shape.
    """
    if isinstance(raw, _ActionBase):
        return raw
    if not isinstance(raw, dict):
        raise ValidationError("Action must be an object")

    action_type = raw.get("type")
    if action_type is None:
        raise ValidationError("Action has no 'type' field")
    if not isinstance(action_type, str) or action_type not in ACTION_TYPES:
        raise UnknownActionError(f"{action_type}")

    try:
        return _ADAPTER.validate_python(raw)
    except pydantic.ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'][1:]) or action_type}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"{action_type}: {details}") from e


def action_type_of(raw: Any) -> str:
    """Best-effort type name, for labels of actions that failed to parse."""
    if isinstance(raw, _ActionBase):
        return raw.type  # type: ignore[attr-defined]
    if isinstance(raw, dict):
        return str(raw.get("type") or "unknown")
    return "unknown"


def action_label_of(raw: Any) -> str | None:
    if isinstance(raw, _ActionBase):
        return raw.label
    if isinstance(raw, dict) and isinstance(raw.get("label"), str):
        return raw["label"]
    return None
