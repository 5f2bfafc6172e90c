"""
Bearer token authentication against an external OIDC identity provider.

Tokens are issued elsewhere; this module only verifies them. RS256 tokens are
checked against the provider's JWKS, HS* tokens against a shared secret.
The verified ``sub``/``email``/``name`` claims resolve to a directory user,
which is created on first sight.
"""
import logging

import jwt
from django.conf import settings
from rest_framework import authentication, exceptions

from apps.users.provisioning import provision_user

logger = logging.getLogger(__name__)


class JWKSKeyResolver:
    """Lazily built PyJWKClient for the configured issuer"""

    _client = None

    @classmethod
    def get_client(cls) -> jwt.PyJWKClient:
        if cls._client is None:
            jwks_url = f"{settings.OIDC_ISSUER_URL.rstrip('/')}/.well-known/jwks.json"
            cls._client = jwt.PyJWKClient(jwks_url, cache_keys=True)
            logger.info(f"JWKS client initialized for {jwks_url}")
        return cls._client

    @classmethod
    def reset(cls):
        cls._client = None


def _verification_key(token: str, algorithm: str):
    if algorithm.startswith("HS"):
        return settings.OIDC_SHARED_SECRET
    return JWKSKeyResolver.get_client().get_signing_key_from_jwt(token).key


def decode_access_token(token: str) -> dict:
    """Verify signature, expiry and issuer, returning the claims"""
    algorithm = settings.OIDC_ALGORITHM
    options = {"verify_aud": False, "require": ["exp", "sub"]}
    issuer = settings.OIDC_ISSUER_URL or None
    if issuer is None:
        options["verify_iss"] = False

    claims = jwt.decode(
        token,
        _verification_key(token, algorithm),
        algorithms=[algorithm],
        issuer=issuer,
        options=options,
    )

    client_id = settings.OIDC_CLIENT_ID
    if client_id and claims.get("client_id", client_id) != client_id:
        raise jwt.InvalidTokenError("Token was issued for another client")
    if claims.get("token_use", "access") != "access":
        raise jwt.InvalidTokenError("Not an access token")
    return claims


class OIDCAuthentication(authentication.BaseAuthentication):
    keyword = "Bearer"

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None
        if len(header) != 2:
            raise exceptions.AuthenticationFailed("Invalid authorization header")

        token = header[1].decode()
        try:
            claims = decode_access_token(token)
        except jwt.PyJWTError as exc:
            logger.warning(f"Rejected access token: {exc}")
            raise exceptions.AuthenticationFailed("Invalid or expired token")

        user = provision_user(claims["sub"], claims.get("email"), claims.get("name"))
        return user, claims

    def authenticate_header(self, request):
        return self.keyword
