"""
Account Core: identity, credential and tag storage for accounts.

These models hold everything an account record persists EXCEPT its
storage identity (account id or email hash). The identity belongs to the
storage engine's dimension key and is attached by the entity wrappers in
``sms4.account.models``; keeping it out of the payload means a payload can
never disagree with the key it is stored under.

Passwords are stored as argon2id PHC strings (``$argon2id$v=19$...``).
Email addresses are stored with their domain lowercased.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from pydantic import BaseModel, Field
from pydantic import validate_email as parse_email

from sms4.account.errors import InvalidEmail
from sms4.account.permissions import holds
from sms4.account.schema import Permission
from sms4.account.tags import Tag, permissions_of
from sms4.account.verify import Ext, VerifyCx

# OWASP recommended argon2id parameters
_hasher = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)


# ════════════════════════════════════════════════════════════════
# Credentials
# ════════════════════════════════════════════════════════════════


def hash_password(password: str) -> str:
    """Hash a password with argon2id and a fresh random salt."""
    return _hasher.hash(password)


def check_password(password_hash: str, password: str) -> bool:
    """
    Verify ``password`` against a stored hash.

    A mismatch and a malformed or unsupported stored hash both return False.
    """
    try:
        return _hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


# ════════════════════════════════════════════════════════════════
# Email
# ════════════════════════════════════════════════════════════════


def validate_email(email: str, allowed_domains: Iterable[str]) -> str:
    """
    Check that ``email`` is a bare address on one of ``allowed_domains``.

    Syntax is checked by email-validator. Display-name forms such as
    ``Bob <bob@pkuschool.edu.cn>`` are rejected.

    Returns:
        The normalized address: local part as given, domain lowercased.

    Raises:
        InvalidEmail: If the address is malformed or on another domain.
    """
    try:
        _, address = parse_email(email)
    except ValueError as exc:
        raise InvalidEmail(email, "malformed address") from exc
    if address.lower() != email.lower():
        raise InvalidEmail(email, "malformed address")
    local, domain = address.rsplit("@", 1)
    if domain.lower() not in {d.lower() for d in allowed_domains}:
        raise InvalidEmail(email)
    return f"{local}@{domain.lower()}"


def email_hash(email: str) -> int:
    """
    64-bit partition key of an email address.

    Deterministic across processes. Only computed when an unverified
    account is first created; afterwards the stored value is authoritative.
    """
    digest = hashlib.blake2b(email.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "little")


# ════════════════════════════════════════════════════════════════
# Persisted payloads
# ════════════════════════════════════════════════════════════════


class AccountCore(BaseModel):
    """Persisted fields of a verified account."""

    email: str
    name: str
    password_hash: str
    tags: set[Tag] = Field(default_factory=set)
    ext: Ext = Field(default_factory=Ext)

    def set_password(self, password: str) -> None:
        self.password_hash = hash_password(password)

    def verify_password(self, password: str) -> bool:
        return check_password(self.password_hash, password)

    def permissions(self) -> frozenset[Permission]:
        return permissions_of(self.tags)

    def has_permission(self, required: Permission) -> bool:
        return holds(self.permissions(), required)


class UnverifiedCore(BaseModel):
    """Persisted fields of an account awaiting activation."""

    email: str
    ext: VerifyCx | None = None
