"""Permission enumeration for image access keys."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class Permission(enum.StrEnum):
    """A capability an access key can grant on its image."""

    VIEW = "view"
    DOWNLOAD = "download"
    SHARE = "share"
    DELETE = "delete"


def normalize_permissions(values: Iterable[str | Permission]) -> frozenset[Permission]:
    """Coerce raw permission names into a set of :class:`Permission`.

    Raises:
        ValueError: On an unknown permission name.
    """
    return frozenset(Permission(v) for v in values)


def sorted_permissions(perms: Iterable[Permission]) -> list[Permission]:
    """Return *perms* in declaration order (stable for storage and responses)."""
    order = list(Permission)
    return sorted(set(perms), key=order.index)
