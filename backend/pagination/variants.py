"""Page roles and the class vocabulary that tags nodes with them."""
from __future__ import annotations

from enum import Enum
from typing import Iterable, Mapping

from bs4 import Tag


class PageRole(str, Enum):
    SINGLE = "single-page"
    FIRST = "first-page"
    INNER = "inner-pages"
    LAST = "last-page"


ALL_ROLES: frozenset[PageRole] = frozenset(PageRole)

# Untagged regions fall back to these. Untagged table head/foot rows apply everywhere.
DEFAULT_VARIANTS: dict[str, list[PageRole]] = {
    "header": [PageRole.FIRST],
    "body": [PageRole.FIRST],
    "footer": [PageRole.FIRST, PageRole.INNER, PageRole.LAST],
    "table": list(PageRole),
}

_ROLE_BY_CLASS = {role.value: role for role in PageRole}


def classes_of(node: Tag) -> list[str]:
    value = node.get("class") or []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(node: Tag, name: str) -> bool:
    return name in classes_of(node)


def tagged_variants(node: Tag) -> frozenset[PageRole]:
    """Variant classes present on the node itself (possibly empty)."""
    return frozenset(_ROLE_BY_CLASS[c] for c in classes_of(node) if c in _ROLE_BY_CLASS)


def resolve_variants(
    node: Tag,
    region: str,
    defaults: Mapping[str, Iterable[PageRole]] | None = None,
    *,
    fallback: Tag | None = None,
) -> frozenset[PageRole]:
    """
    Variants a node applies to: its own tags, else those of `fallback`
    (e.g. the row's thead), else the region default.
    """
    own = tagged_variants(node)
    if own:
        return own
    if fallback is not None:
        inherited = tagged_variants(fallback)
        if inherited:
            return inherited
    table = defaults if defaults is not None else DEFAULT_VARIANTS
    return frozenset(PageRole(r) for r in table.get(region, ALL_ROLES))


def page_role(ordinal: int, page_count: int) -> PageRole:
    if page_count == 1:
        return PageRole.SINGLE
    if ordinal == 1:
        return PageRole.FIRST
    if ordinal == page_count:
        return PageRole.LAST
    return PageRole.INNER
