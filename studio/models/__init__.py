"""
Pydantic models for Studio.

Wire shapes produced by forms and by the assistant. No kernel logic here.
"""

from studio.models.actions import (
    ACTION_TYPES,
    Action,
    AddItemAction,
    ApplyPresetAction,
    DeleteItemAction,
    GenerateSectionAction,
    ToggleSectionAction,
    UpdateAction,
    UpdateButtonAction,
    UpdateFieldAction,
    UpdateItemAction,
    UpdateThemeAction,
    parse_action,
)

__all__ = [
    "ACTION_TYPES",
    "Action",
    "AddItemAction",
    "ApplyPresetAction",
    "DeleteItemAction",
    "GenerateSectionAction",
    "ToggleSectionAction",
    "UpdateAction",
    "UpdateButtonAction",
    "UpdateFieldAction",
    "UpdateItemAction",
    "UpdateThemeAction",
    "parse_action",
]
