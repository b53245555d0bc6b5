"""Role hierarchy of the graph meta-service."""

from __future__ import annotations

from enum import IntEnum

# Space ID 0 is the root space; GOD is granted there and applies everywhere.
ROOT_SPACE_ID = 0


class Role(IntEnum):
    """Role levels, numbered like the meta-service ``RoleType``.

    A lower value is more privileged.
    """

    GOD = 1
    ADMIN = 2
    DBA = 3
    USER = 4
    GUEST = 5

    @classmethod
    def parse(cls, name: str | None) -> "Role":
        """Map a role name from a request; unknown names fall back to GUEST."""
        return cls.__members__.get(name or "", cls.GUEST)

    @property
    def label(self) -> str:
        return self.name

    def can_manage(self, target: "Role") -> bool:
        """Whether an operator holding this role may grant or revoke ``target``."""
        return self <= target
