"""
Session Token Utilities

Issues and validates the signed session tokens (HS256 JWTs) handed out after
phone verification. Tokens carry the account id, phone number, role and the
account status at issue time.

The signing secret is resolved once at startup by `load_jwt_secret` and bound
to a `TokenService` instance, which is stored on `app.state` and injected into
request handlers.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from jose import ExpiredSignatureError, JWTError, jwt

from alumni.core.config import INSECURE_DEFAULT_SECRET, Settings
from alumni.core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class SecretLoadError(RuntimeError):
    """Raised when the signing secret cannot be resolved at startup."""


@dataclass(frozen=True)
class TokenPayload:
    """Claims extracted from a valid session token."""

    user_id: UUID
    phone_number: str
    status: str
    role: str
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


class TokenService:
    """Signs and verifies session tokens with a single shared secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(hours=24),
    ):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expires_in = expires_in

    def issue(
        self,
        *,
        user_id: UUID,
        phone_number: str,
        status: str,
        role: str = "user",
    ) -> IssuedToken:
        """Create a signed token for an account."""
        issued_at = datetime.now(UTC).replace(microsecond=0)
        expires_at = issued_at + self._expires_in
        claims = {
            "sub": str(user_id),
            "phone": phone_number,
            "status": status,
            "role": role,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self._secret, algorithm=self._algorithm)
        return IssuedToken(token=token, expires_at=expires_at)

    def verify(self, token: str) -> TokenPayload:
        """
        Validate a token and return its claims.

        Raises:
            UnauthorizedError: If the signature is invalid, the token has
                expired, or required claims are missing.
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as e:
            raise UnauthorizedError("Token has expired") from e
        except JWTError as e:
            raise UnauthorizedError("Invalid token") from e

        try:
            return TokenPayload(
                user_id=UUID(claims["sub"]),
                phone_number=claims["phone"],
                status=claims["status"],
                role=claims.get("role", "user"),
                issued_at=datetime.fromtimestamp(claims["iat"], UTC),
                expires_at=datetime.fromtimestamp(claims["exp"], UTC),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UnauthorizedError("Invalid token") from e


def extract_token_from_header(authorization: str | None) -> str:
    """
    Extract the token from an `Authorization: Bearer <token>` header.

    Raises:
        UnauthorizedError: If the header is missing or not a bearer credential.
    """
    if not authorization:
        raise UnauthorizedError("Missing authorization header")
    if not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError("Invalid authorization header format")

    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise UnauthorizedError("Invalid authorization header format")
    return token


def load_jwt_secret(settings: Settings) -> str:
    """
    Resolve the token signing secret.

    Reads AWS Secrets Manager when JWT_SECRET_NAME is configured, otherwise
    falls back to JWT_SECRET. Production refuses the built-in default secret.
    """
    if settings.jwt_secret_name:
        client = boto3.client("secretsmanager", region_name=settings.aws_region)
        try:
            response = client.get_secret_value(SecretId=settings.jwt_secret_name)
        except (ClientError, BotoCoreError) as e:
            raise SecretLoadError(
                f"Could not read signing secret {settings.jwt_secret_name}"
            ) from e

        secret = response.get("SecretString")
        if not secret:
            raise SecretLoadError(f"Secret {settings.jwt_secret_name} has no string value")
        logger.info("Loaded token signing secret from Secrets Manager")
        return secret

    if settings.jwt_secret == INSECURE_DEFAULT_SECRET:
        if settings.is_production:
            raise SecretLoadError("JWT_SECRET must be set in production")
        logger.warning("Using the default development JWT secret")

    return settings.jwt_secret


def build_token_service(settings: Settings) -> TokenService:
    """Create the process-wide token service from configuration."""
    return TokenService(
        load_jwt_secret(settings),
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(hours=settings.jwt_expire_hours),
    )
