"""User roles and their ranking."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """User roles with hierarchical permissions.

    Values are the stored (Russian) role names.
    """

    CHAIRMAN = "Председатель"
    DGIS = "ДГИС"
    STAROSTA = "Староста"
    SUPERVISOR = "Супервайзер"

    @property
    def rank(self) -> int:
        """Rank of the role, higher means more rights."""
        return _RANKS[self]

    @classmethod
    def is_valid(cls, value: object) -> bool:
        """Check whether the value names one of the four roles.

        :param value: Candidate role value
        :return: True if the value is a known role
        """
        return isinstance(value, str) and value in _RANKS

    def has_higher_role(self, target: Role | str) -> bool:
        """Check if this role strictly outranks the target role.

        :param target: Role to compare against
        :return: True if this role's rank is greater
        """
        return rank_of(self) > rank_of(target)

    def has_equal_or_higher_role(self, target: Role | str) -> bool:
        """Check if this role ranks at least as high as the target role.

        :param target: Role to compare against
        :return: True if this role's rank is greater or equal
        """
        return rank_of(self) >= rank_of(target)


_RANKS: dict[str, int] = {
    Role.SUPERVISOR: 1,
    Role.STAROSTA: 2,
    Role.DGIS: 3,
    Role.CHAIRMAN: 4,
}


def rank_of(role: Role | str) -> int:
    """Return the rank of a role value, 0 for unknown values."""
    if not isinstance(role, str):
        return 0
    return _RANKS.get(role, 0)


def has_higher_role(role: Role | str, target: Role | str) -> bool:
    """Compare two role values, unknown values never outrank anything."""
    return rank_of(role) > rank_of(target)


def has_equal_or_higher_role(role: Role | str, target: Role | str) -> bool:
    """Compare two role values with ``>=`` on their ranks."""
    return rank_of(role) >= rank_of(target)
