"""Collision-free test case identifier assignment."""

import logging
from collections.abc import Collection, Iterable
from typing import TypeVar, Union

from ..core.models import ApiTestCase, GuiTestCase

logger = logging.getLogger(__name__)

CaseT = TypeVar("CaseT", GuiTestCase, ApiTestCase)


def ensure_unique_id(candidate: str, existing_ids: Collection[str]) -> str:
    """Return an id that does not collide with any existing one.

    The candidate is returned unchanged when it is free. Otherwise the first
    free ``{candidate}-{n}`` for n = 1, 2, ... is returned.

    Args:
        candidate: Suggested identifier.
        existing_ids: Identifiers already taken.

    Returns:
        A free identifier.
    """
    if candidate not in existing_ids:
        return candidate

    suffix = 1
    while f"{candidate}-{suffix}" in existing_ids:
        suffix += 1
    return f"{candidate}-{suffix}"


def collect_ids(cases: Iterable[Union[GuiTestCase, ApiTestCase]]) -> set[str]:
    """Return the set of ids used by a collection."""
    return {case.id for case in cases}


def merge_unique(collection: list[CaseT], additions: Iterable[CaseT]) -> list[CaseT]:
    """Append a batch of cases to a collection, renaming colliding ids.

    Ids are assigned incrementally, so collisions inside the batch itself
    are resolved as well. Neither input list is modified.

    Args:
        collection: Cases already in the collection.
        additions: New cases to append.

    Returns:
        A new list holding the collection followed by the renamed additions.
    """
    merged = list(collection)
    taken = collect_ids(collection)

    for case in additions:
        unique_id = ensure_unique_id(case.id, taken)
        if unique_id != case.id:
            logger.debug(f"Renamed duplicate test id {case.id} -> {unique_id}")
            case = case.model_copy(update={"id": unique_id})
        taken.add(unique_id)
        merged.append(case)

    return merged
