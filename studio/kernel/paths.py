"""
Studio Kernel — Path Resolver

Dotted-path reads and writes over a site document.

  get_path(doc, "hero.styles.title.color")       → value or None
  set_path(doc, "hero.styles.title.color", "#f") → new document

Pure. set_path copies only the dicts along the path; every other subtree
is shared with the input, which is never modified.

Paths carry no array-index syntax. Array elements are addressed by the
index-bearing actions (update_item, delete_item).
"""

from __future__ import annotations

from typing import Any

from studio.errors import ValidationError


def split_path(path: str) -> list[str]:
    """Split a dotted path into segments. Raises ValidationError if malformed."""
    if not isinstance(path, str) or not path:
        raise ValidationError(f"Invalid path: {path!r}")
    parts = path.split(".")
    if any(not p for p in parts):
        raise ValidationError(f"Invalid path: {path!r}")
    return parts


def is_valid_path(path: Any) -> bool:
    try:
        split_path(path)
    except ValidationError:
        return False
    return True


def get_path(doc: Any, path: str) -> Any:
    """
    Read the value at `path`. Returns None as soon as the walk hits a
    missing key or a non-dict value. Never raises.
    """
    if not isinstance(path, str):
        return None
    current = doc
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def set_path(doc: dict[str, Any], path: str, value: Any, *, strict: bool = False) -> dict[str, Any]:
    """
    Return a new document with `value` written at `path`.

    Missing intermediates are created as empty dicts. An intermediate that
    holds a non-dict value is replaced by a fresh dict, or rejected with
    ValidationError when `strict` is set.
    """
    parts = split_path(path)
    if not isinstance(doc, dict):
        raise ValidationError("Document must be an object")

    root = dict(doc)
    current = root
    walked: list[str] = []
    for part in parts[:-1]:
        walked.append(part)
        child = current.get(part)
        if child is None:
            child = {}
        elif not isinstance(child, dict):
            if strict:
                raise ValidationError(
                    f"Cannot write through '{'.'.join(walked)}': holds {type(child).__name__}, not an object"
                )
            child = {}
        else:
            child = dict(child)
        current[part] = child
        current = child

    current[parts[-1]] = value
    return root
