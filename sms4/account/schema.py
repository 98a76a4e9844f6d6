"""
Account Schema: enumerations shared by every account-core component.

These enumerations are persisted inside account records, so their values
are part of the stored binary format. Renaming a value is a schema change
and requires a new record version.
"""

from __future__ import annotations

import enum


# ════════════════════════════════════════════════════════════════
# Permissions
# ════════════════════════════════════════════════════════════════


class Permission(str, enum.Enum):
    """A permission group of an account."""

    # Postings
    POST = "post"  # contains GET_PUB_POST
    GET_PUB_POST = "get_pub_post"
    REVIEW_POST = "review_post"  # view, approve or reject posts
    REMOVE_POST = "remove_post"

    # Accounts
    SET_PERMISSIONS = "set_permissions"  # append or remove permissions of an account
    VIEW_FULL_ACCOUNT = "view_full_account"
    VIEW_SIMPLE_ACCOUNT = "view_simple_account"

    # Notifications
    MANAGE_NOTIFICATIONS = "manage_notifications"
    GET_PUB_NOTIFICATIONS = "get_pub_notifications"

    UPLOAD_RESOURCE = "upload_resource"

    # Maintain this system.
    MAINTAIN = "maintain"


# ════════════════════════════════════════════════════════════════
# Tags
# ════════════════════════════════════════════════════════════════


class TagEntry(str, enum.Enum):
    """The entry (discriminator) of a tag."""

    PERMISSION = "permission"
    DEPARTMENT = "department"
    HOUSE = "house"
    ACADEMY = "academy"


class House(str, enum.Enum):
    """Residential houses of the school."""

    ZHIZHEN = "zhizhen"
    ZHIYUAN = "zhiyuan"
    ZHILI = "zhili"
    ZHIXIN = "zhixin"
    ZHIHE = "zhihe"


class Academy(str, enum.Enum):
    """Academies of the school."""

    HUMANITIES = "humanities"
    SCIENCE = "science"
    ENGINEERING = "engineering"
    ARTS = "arts"
    INTERNATIONAL = "international"


# ════════════════════════════════════════════════════════════════
# Verify sessions
# ════════════════════════════════════════════════════════════════


class VerifyVariant(str, enum.Enum):
    """Purpose of a verify session. One session per variant per account."""

    RESET_PASSWORD = "reset_password"
    ACTIVATION = "activation"

    @property
    def label(self) -> str:
        """Human-readable name used in captcha emails."""
        return _VARIANT_LABELS[self]


_VARIANT_LABELS = {
    VerifyVariant.RESET_PASSWORD: "reset password",
    VerifyVariant.ACTIVATION: "account activation",
}
