"""
CSRF state values for the authorization-code flow.
"""

import secrets

STATE_BYTES = 32


def generate_state() -> str:
    """Return 64 lowercase hex characters drawn from the OS CSPRNG."""
    return secrets.token_hex(STATE_BYTES)
