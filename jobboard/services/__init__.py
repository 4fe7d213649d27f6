# JobBoard Services
from jobboard.services.auth import AuthService, IssuedTokens
from jobboard.services.credential_store import CredentialStore
from jobboard.services.single_flight import SingleFlight
from jobboard.services.tokens import TokenService, get_token_service

__all__ = [
    "AuthService",
    "CredentialStore",
    "IssuedTokens",
    "SingleFlight",
    "TokenService",
    "get_token_service",
]
