"""
Authorization-code flow orchestration and the auth server client.
"""

from .controller import AuthorizationFlowController
from .oauth_client import OAuthClient, RevocationOutcome

__all__ = ["AuthorizationFlowController", "OAuthClient", "RevocationOutcome"]
