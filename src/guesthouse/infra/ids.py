"""Opaque identifier generation for guest-facing booking ids.

Public ids are random (not derived from the row id) so they cannot be
enumerated; 18 random bytes give a 24-char url-safe token.
"""

import secrets

PUBLIC_ID_PREFIX = "bk_"
_PUBLIC_ID_BYTES = 18


def generate_public_id() -> str:
    return PUBLIC_ID_PREFIX + secrets.token_urlsafe(_PUBLIC_ID_BYTES)
