"""
Token authentication for the care API.

Kept separate from any view definitions so that Django REST framework
can import it from settings without circular imports.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    Inactive accounts are rejected by the base class, which matters for
    doctors whose account was disabled after a booking was made.
    """

    keyword = 'Token'
