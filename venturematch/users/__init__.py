"""
Users module: accounts, sessions and role tags.
"""

from venturematch.users.auth import AuthService

__all__ = ["AuthService"]
