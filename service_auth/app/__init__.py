"""
Auth Service package for Zest Access.

This package exposes the FastAPI application implementing the OAuth2
authorization-code single sign-on client used by the playgrounds:

- app.main: Application entrypoint that wires routes and lifecycle.
- app.flow: Login, callback, logout and current-user orchestration.
- app.cookies: Cookie codec and the session/state cookies.
- app.validation: Token decoding and claim/signature validation.
- app.jwks: JWKS client for fetching and caching signing keys.
- app.oauth: CSRF state generation.

Design notes:
- Module import must not perform network calls. All IO happens in route
  handlers or explicit startup hooks.
- Use the shared/ utilities for logging, metrics, config and errors.
- The service keeps no session store; the token in the cookie is the session.
"""
