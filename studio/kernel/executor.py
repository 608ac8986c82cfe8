"""
Studio Kernel — Action Executor

(actions, document) → ExecuteResult(results, updated_content, changes)

No side effects. No IO. Actions apply strictly in order, each against the
document produced by the previous one. The input document is never
modified: handlers write through set_path, which copies only the dicts on
the written path, so unchanged subtrees are shared between versions.

Best-effort, not transactional. A bad action becomes a failed ActionResult
and the remaining actions still run.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from typing import Any

from studio.config import settings
from studio.errors import (
    ActionError,
    OutOfRangeError,
    PresetNotFoundError,
    UnknownActionError,
    ValidationError,
)
from studio.kernel.labels import humanize_action
from studio.kernel.paths import get_path, set_path
from studio.kernel.types import (
    THEME_PRESETS,
    THEME_PRIMARY_KEY,
    THEME_SECONDARY_KEY,
    ActionResult,
    ChangeRecord,
    ExecuteResult,
    list_field_for,
    new_id,
)
from studio.models.actions import action_label_of, action_type_of, parse_action

logger = logging.getLogger(__name__)

HandlerResult = tuple[dict[str, Any], list[ChangeRecord]]


class ActionExecutor:
    """
    Applies action lists to site documents.

    presets:      theme preset table for apply_preset
    strict_paths: reject writes through scalar intermediates
    id_factory:   prefix → unique id, for items that arrive without one
    """

    def __init__(
        self,
        *,
        presets: dict[str, dict[str, str]] | None = None,
        strict_paths: bool | None = None,
        id_factory: Callable[[str], str] | None = None,
    ) -> None:
        self.presets = THEME_PRESETS if presets is None else presets
        self.strict_paths = settings.STRICT_PATHS if strict_paths is None else strict_paths
        self.id_factory = id_factory or new_id
        self._handlers: dict[str, Callable[[dict[str, Any], Any], HandlerResult]] = {
            "update": self._update,
            "update_item": self._update_item,
            "add_item": self._add_item,
            "delete_item": self._delete_item,
            "apply_preset": self._apply_preset,
            "update_theme": self._update_theme,
            "generate_section": self._generate_section,
            "toggle_section": self._toggle_section,
            "update_field": self._update_field,
            "update_button": self._update_button,
        }

    @property
    def handled_types(self) -> set[str]:
        return set(self._handlers)

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def execute(self, actions: Iterable[Any] | None, document: dict[str, Any]) -> ExecuteResult:
        """
        Apply `actions` to `document`. Returns every per-action result, the
        final document, and one ChangeRecord per successful mutation.
        """
        actions = list(actions or [])
        if not actions:
            return ExecuteResult(results=[], updated_content=document, changes=[])

        content = document
        results: list[ActionResult] = []
        changes: list[ChangeRecord] = []

        for raw in actions:
            action = None
            try:
                action = parse_action(raw)
                handler = self._handlers.get(action.type)
                if handler is None:
                    raise UnknownActionError(action.type)
                content, recorded = handler(content, action)
            except ActionError as e:
                logger.warning("executor: %s action rejected: %s", action_type_of(raw), e)
                results.append(ActionResult(success=False, label=self._failure_label(raw, action), error=str(e)))
                continue
            except Exception as e:
                logger.exception("executor: unexpected error in %s action", action_type_of(raw))
                results.append(
                    ActionResult(
                        success=False,
                        label=self._failure_label(raw, action),
                        error=f"INTERNAL_ERROR: {e}",
                    )
                )
                continue

            changes.extend(recorded)
            results.append(ActionResult(success=True, label=humanize_action(action)))

        logger.debug(
            "executor: %d/%d actions applied, %d changes",
            sum(1 for r in results if r.success),
            len(results),
            len(changes),
        )
        return ExecuteResult(results=results, updated_content=content, changes=changes)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _failure_label(raw: Any, action: Any) -> str:
        label = action_label_of(raw)
        if label:
            return label
        if action is not None:
            return humanize_action(action)
        return f"Erreur: {action_type_of(raw)}"

    def _write(self, content: dict[str, Any], path: str, value: Any) -> dict[str, Any]:
        return set_path(content, path, value, strict=self.strict_paths)

    def _with_id(self, item: Any, prefix: str) -> Any:
        if isinstance(item, dict) and not item.get("id"):
            item = dict(item)
            item["id"] = self.id_factory(prefix)
        return item

    @staticmethod
    def _get_array(content: dict[str, Any], path: str) -> list[Any]:
        items = get_path(content, path)
        if not isinstance(items, list):
            raise OutOfRangeError(f"'{path}' is not an array")
        return items

    @staticmethod
    def _check_index(items: list[Any], index: int, path: str) -> None:
        if not 0 <= index < len(items):
            raise OutOfRangeError(f"index {index} outside '{path}' (length {len(items)})")

    @staticmethod
    def _theme(content: dict[str, Any]) -> dict[str, Any]:
        theme = content.get("theme")
        return theme if isinstance(theme, dict) else {}

    # -----------------------------------------------------------------------
    # Handlers: (content, action) → (new content, changes)
    # -----------------------------------------------------------------------

    def _update(self, content: dict[str, Any], a: Any) -> HandlerResult:
        old = get_path(content, a.path)
        value = copy.deepcopy(a.value)
        content = self._write(content, a.path, value)
        return content, [ChangeRecord(a.path, old, value)]

    def _update_item(self, content: dict[str, Any], a: Any) -> HandlerResult:
        items = self._get_array(content, a.path)
        self._check_index(items, a.index, a.path)
        old = items[a.index]
        if not isinstance(old, dict):
            raise ValidationError(f"'{a.path}[{a.index}]' is not an object")

        merged = {**old, **copy.deepcopy(a.updates)}
        new_items = list(items)
        new_items[a.index] = merged
        content = self._write(content, a.path, new_items)
        return content, [ChangeRecord(f"{a.path}[{a.index}]", old, merged)]

    def _add_item(self, content: dict[str, Any], a: Any) -> HandlerResult:
        items = self._get_array(content, a.path)
        item = self._with_id(copy.deepcopy(a.value), "item")
        content = self._write(content, a.path, [*items, item])
        return content, [ChangeRecord(f"{a.path}[{len(items)}]", None, item)]

    def _delete_item(self, content: dict[str, Any], a: Any) -> HandlerResult:
        items = self._get_array(content, a.path)
        self._check_index(items, a.index, a.path)
        old = items[a.index]
        content = self._write(content, a.path, items[: a.index] + items[a.index + 1 :])
        return content, [ChangeRecord(f"{a.path}[{a.index}]", old, None)]

    def _apply_preset(self, content: dict[str, Any], a: Any) -> HandlerResult:
        preset = self.presets.get(a.preset_id)
        if preset is None:
            raise PresetNotFoundError(f"Unknown theme preset: {a.preset_id}")

        old = self._theme(content)
        theme = {**old, THEME_PRIMARY_KEY: preset["primary"], THEME_SECONDARY_KEY: preset["secondary"]}
        return {**content, "theme": theme}, [ChangeRecord("theme", old, theme)]

    def _update_theme(self, content: dict[str, Any], a: Any) -> HandlerResult:
        if a.primary is None and a.secondary is None:
            raise ValidationError("update_theme requires 'primary' or 'secondary'")

        old = self._theme(content)
        theme = dict(old)
        if a.primary is not None:
            theme[THEME_PRIMARY_KEY] = a.primary
        if a.secondary is not None:
            theme[THEME_SECONDARY_KEY] = a.secondary
        return {**content, "theme": theme}, [ChangeRecord("theme", old, theme)]

    def _generate_section(self, content: dict[str, Any], a: Any) -> HandlerResult:
        old = content.get(a.section)
        if old is not None and not isinstance(old, dict):
            raise ValidationError(f"Section '{a.section}' is not an object")
        old = old or {}

        data = copy.deepcopy(a.data)
        list_field = list_field_for(a.section)
        if list_field in data:
            if not isinstance(data[list_field], list):
                raise ValidationError(f"'{a.section}.{list_field}' must be an array")
            data[list_field] = [self._with_id(item, "gen") for item in data[list_field]]

        section = {**old, **data}
        return {**content, a.section: section}, [ChangeRecord(a.section, old, section)]

    def _toggle_section(self, content: dict[str, Any], a: Any) -> HandlerResult:
        old = content.get(a.section)
        if not isinstance(old, dict):
            raise OutOfRangeError(f"Section '{a.section}' does not exist")

        section = {**old, "enabled": a.enabled}
        return {**content, a.section: section}, [ChangeRecord(f"{a.section}.enabled", old.get("enabled"), a.enabled)]

    def _update_field(self, content: dict[str, Any], a: Any) -> HandlerResult:
        path = f"{a.section}.{a.field}"
        old = get_path(content, path)
        value = copy.deepcopy(a.value)
        content = self._write(content, path, value)
        return content, [ChangeRecord(path, old, value)]

    def _update_button(self, content: dict[str, Any], a: Any) -> HandlerResult:
        path = f"{a.section}.{a.button}"
        old = get_path(content, path)
        if old is not None and not isinstance(old, dict):
            raise ValidationError(f"'{path}' is not an object")

        button = {**(old or {}), **copy.deepcopy(a.updates)}
        content = self._write(content, path, button)
        return content, [ChangeRecord(path, old, button)]


def execute(actions: Iterable[Any] | None, document: dict[str, Any]) -> ExecuteResult:
    """Apply actions with a default-configured executor."""
    return ActionExecutor().execute(actions, document)
