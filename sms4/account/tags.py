"""
Account Tags: a tagged union over permissions and organizational labels.

A tag is one of four variants, each carrying its own payload:

- ``permission``: a Permission atom (granted only through SET_PERMISSIONS)
- ``department``: a free-form department label
- ``house``: a House
- ``academy``: an Academy

Variants are serialized adjacently tagged, e.g.
``{"entry": "permission", "tag": "post"}``. The variant models are frozen so
tags can live in sets.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from sms4.account.permissions import default_set
from sms4.account.schema import Academy, House, Permission, TagEntry


class PermissionTag(BaseModel):
    """A permission group."""

    model_config = ConfigDict(frozen=True)

    entry: Literal["permission"] = "permission"
    tag: Permission


class DepartmentTag(BaseModel):
    """A department."""

    model_config = ConfigDict(frozen=True)

    entry: Literal["department"] = "department"
    tag: str = Field(min_length=1)


class HouseTag(BaseModel):
    """A house."""

    model_config = ConfigDict(frozen=True)

    entry: Literal["house"] = "house"
    tag: House


class AcademyTag(BaseModel):
    """An academy."""

    model_config = ConfigDict(frozen=True)

    entry: Literal["academy"] = "academy"
    tag: Academy


Tag = Annotated[
    Union[PermissionTag, DepartmentTag, HouseTag, AcademyTag],
    Field(discriminator="entry"),
]


def as_entry(tag: Tag) -> TagEntry:
    """Classify a tag by its variant."""
    return TagEntry(tag.entry)


def as_permission(tag: Tag) -> Permission | None:
    """The permission carried by a permission tag, otherwise None."""
    if isinstance(tag, PermissionTag):
        return tag.tag
    return None


def is_user_definable(entry: TagEntry) -> bool:
    """
    Whether an account holder may attach tags of this entry themselves.

    Organizational tags are self-service; permission tags require an actor
    holding SET_PERMISSIONS.
    """
    return entry is not TagEntry.PERMISSION


def permission_tag(permission: Permission) -> PermissionTag:
    """Tag granting ``permission``."""
    return PermissionTag(tag=permission)


def department_tag(name: str) -> DepartmentTag:
    """Tag naming a department."""
    return DepartmentTag(tag=name)


def house_tag(house: House) -> HouseTag:
    """Tag placing an account in ``house``."""
    return HouseTag(tag=house)


def academy_tag(academy: Academy) -> AcademyTag:
    """Tag placing an account in ``academy``."""
    return AcademyTag(tag=academy)


def default_tags() -> set[Tag]:
    """Permission tags attached to a newly activated account."""
    return {permission_tag(p) for p in default_set()}


def permissions_of(tags: Iterable[Tag]) -> frozenset[Permission]:
    """Extract the permission atoms from a collection of tags."""
    return frozenset(p for p in map(as_permission, tags) if p is not None)
