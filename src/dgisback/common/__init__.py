"""Common data models and utilities for the application."""

from .roles import Role, has_equal_or_higher_role, has_higher_role, rank_of

__all__ = ["Role", "has_equal_or_higher_role", "has_higher_role", "rank_of"]
