"""Caller identity tokens."""

from .security_manager import CallerIdentity, SecurityManager

__all__ = ["CallerIdentity", "SecurityManager"]
