"""
Token authentication for the billing API.

Kept apart from the views so that REST framework can import the
authentication class from settings without pulling in view modules.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>`` as issued by the login endpoint."""

    keyword = 'Token'
