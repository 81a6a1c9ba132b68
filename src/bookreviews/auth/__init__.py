"""Identity: accounts, credentials and bearer tokens."""

from .identity import Identity, IdentityService

__all__ = ["Identity", "IdentityService"]
