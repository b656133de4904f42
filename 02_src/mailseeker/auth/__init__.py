"""Auth module."""

from .provider import IAuthProvider, LoginPrompt, TokenServiceAuthProvider

__all__ = ["IAuthProvider", "LoginPrompt", "TokenServiceAuthProvider"]
