"""
Permission Containment: the static "implies" relation between permissions.

Holding a permission may imply holding others: ``POST`` implies
``GET_PUB_POST``, ``SET_PERMISSIONS`` implies both account-view permissions,
and so on. The relation is declared pair by pair in CONTAINMENT and is
NOT transitively closed: every multi-hop implication must be listed
explicitly (``REMOVE_POST`` lists ``GET_PUB_POST`` directly even though
``REVIEW_POST`` already implies it). Keeping the table flat means every
grant an account effectively receives is visible in one place.

A permission does not contain itself unless the pair is listed; the
identity case is handled by ``holds``, not by ``contains``.

Every function here is pure and is queried on every authorization check.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sms4.account.schema import Permission

logger = logging.getLogger(__name__)


# holder -> permissions implied by holding it
CONTAINMENT: dict[Permission, frozenset[Permission]] = {
    Permission.POST: frozenset({Permission.GET_PUB_POST}),
    Permission.REVIEW_POST: frozenset({Permission.GET_PUB_POST}),
    Permission.REMOVE_POST: frozenset({Permission.GET_PUB_POST, Permission.REVIEW_POST}),
    Permission.SET_PERMISSIONS: frozenset(
        {Permission.VIEW_FULL_ACCOUNT, Permission.VIEW_SIMPLE_ACCOUNT}
    ),
    Permission.VIEW_FULL_ACCOUNT: frozenset({Permission.VIEW_SIMPLE_ACCOUNT}),
    Permission.MANAGE_NOTIFICATIONS: frozenset({Permission.GET_PUB_NOTIFICATIONS}),
}

DEFAULT_PERMISSIONS: frozenset[Permission] = frozenset(
    {
        Permission.POST,
        Permission.GET_PUB_POST,
        Permission.VIEW_SIMPLE_ACCOUNT,
        Permission.UPLOAD_RESOURCE,
        Permission.GET_PUB_NOTIFICATIONS,
    }
)


def contains(holder: Permission, required: Permission) -> bool:
    """Whether holding ``holder`` implies holding ``required``."""
    return required in CONTAINMENT.get(holder, frozenset())


def default_set() -> frozenset[Permission]:
    """Permissions granted to every newly created account."""
    return DEFAULT_PERMISSIONS


def holds(held: Iterable[Permission], required: Permission) -> bool:
    """
    Check whether a set of held permissions satisfies ``required``.

    Satisfied if ``required`` is held directly, or if any held permission
    contains it according to the table. Only one hop is followed.

    Args:
        held: Permissions currently attached to the account.
        required: The permission the action needs.

    Returns:
        True if the action is permitted.
    """
    held = frozenset(held)
    if required in held:
        return True
    granted = any(contains(p, required) for p in held)
    if not granted:
        logger.debug("Permission denied: required=%s", required.value)
    return granted
