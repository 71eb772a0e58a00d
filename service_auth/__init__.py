"""
Auth service: OAuth2 authorization-code login and session validation.
"""
