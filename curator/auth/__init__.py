"""Admin authentication."""

from curator.auth.tokens import COOKIE_NAME, AdminAuthenticator, AdminIdentity, InvalidToken

__all__ = ["COOKIE_NAME", "AdminAuthenticator", "AdminIdentity", "InvalidToken"]
