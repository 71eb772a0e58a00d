"""
OAuth2 client primitives: CSRF state generation.
"""

from .state import generate_state

__all__ = ["generate_state"]
