from __future__ import annotations

import re
from typing import Sequence

from grindstone.data.models import Category


_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def validate_session_name(name: str) -> bool:
    return bool(name.strip())


def validate_new_category_name(name: str, existing: Sequence[Category]) -> str | None:
    """Returns an error message, or None when the name can be created."""
    if not name.strip():
        return "Category name cannot be empty"
    if any(c.name == name for c in existing):
        return "Category already exists"
    return None


def validate_update_category_name(
    name: str,
    existing: Sequence[Category],
    current_name: str,
) -> str | None:
    """Like :func:`validate_new_category_name`, but a category may keep its own name."""
    if not name.strip():
        return "Category name cannot be empty"
    if name != current_name and any(c.name == name for c in existing):
        return "Category already exists"
    return None


def validate_hex_color(color: str) -> bool:
    return bool(_HEX_COLOR.match(color))
