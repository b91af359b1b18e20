"""Prompt character selection based on the effective user id."""

import logging
import os
from typing import Protocol

logger = logging.getLogger(__name__)

ROOT_UID = 0
ROOT_CHAR = "#"
USER_CHAR = "$"


class UserIdentity(Protocol):
    def effective_uid(self) -> int: ...


class OsIdentity:
    """Reads the effective uid from the OS."""

    def effective_uid(self) -> int:
        return os.geteuid()


class FixedIdentity:
    """An identity that always reports the same uid."""

    def __init__(self, uid: int) -> None:
        self.uid = uid

    def effective_uid(self) -> int:
        return self.uid


def prompt_char(identity: UserIdentity | None = None) -> str:
    """Return "#" for root and "$" for everyone else.

    Platforms without geteuid (Windows) and failing lookups fall back to "$".
    """
    identity = identity or OsIdentity()
    try:
        uid = identity.effective_uid()
    except (AttributeError, OSError) as exc:
        logger.debug(f"Cannot read effective uid: {exc}")
        return USER_CHAR
    return ROOT_CHAR if uid == ROOT_UID else USER_CHAR
