"""
Token authentication for staff clients.

Kept apart from the views so DRF can import it from settings without
pulling in any view modules.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>`` as issued by the login endpoint."""

    keyword = 'Token'
