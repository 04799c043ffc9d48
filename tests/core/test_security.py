"""
Tests for session token issue/verify and signing secret loading.
"""

import base64
import json
from datetime import timedelta
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from botocore.exceptions import ClientError

from alumni.core.config import INSECURE_DEFAULT_SECRET, Settings
from alumni.core.exceptions import UnauthorizedError
from alumni.core.security import (
    SecretLoadError,
    TokenService,
    extract_token_from_header,
    load_jwt_secret,
)


class TestTokenService:
    def test_issue_and_verify(self, token_service):
        user_id = uuid4()
        issued = token_service.issue(
            user_id=user_id,
            phone_number="+85291234567",
            status="pending_approval",
            role="user",
        )

        payload = token_service.verify(issued.token)

        assert payload.user_id == user_id
        assert payload.phone_number == "+85291234567"
        assert payload.status == "pending_approval"
        assert payload.role == "user"
        assert payload.is_admin is False
        assert payload.expires_at - payload.issued_at == timedelta(hours=24)

    def test_admin_role_round_trips(self, token_service):
        issued = token_service.issue(
            user_id=uuid4(), phone_number="+85291234567", status="active", role="admin"
        )
        assert token_service.verify(issued.token).is_admin is True

    def test_expired_token_rejected(self):
        service = TokenService("secret", expires_in=timedelta(seconds=-10))
        issued = service.issue(user_id=uuid4(), phone_number="+85291234567", status="active")

        with pytest.raises(UnauthorizedError, match="expired"):
            service.verify(issued.token)

    def test_token_signed_with_other_secret_rejected(self, token_service):
        other = TokenService("another-secret")
        issued = other.issue(user_id=uuid4(), phone_number="+85291234567", status="active")

        with pytest.raises(UnauthorizedError):
            token_service.verify(issued.token)

    def test_tampered_payload_rejected(self, token_service):
        issued = token_service.issue(
            user_id=uuid4(), phone_number="+85291234567", status="active", role="user"
        )
        header, payload, signature = issued.token.split(".")
        claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
        claims["role"] = "admin"
        forged = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()

        with pytest.raises(UnauthorizedError):
            token_service.verify(f"{header}.{forged}.{signature}")

    def test_garbage_rejected(self, token_service):
        with pytest.raises(UnauthorizedError):
            token_service.verify("not-a-jwt")

    def test_empty_secret_refused(self):
        with pytest.raises(ValueError):
            TokenService("")


class TestExtractTokenFromHeader:
    def test_bearer_header(self):
        assert extract_token_from_header("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "bearer abc", "Bearer "])
    def test_invalid_headers(self, header):
        with pytest.raises(UnauthorizedError):
            extract_token_from_header(header)


class TestLoadJwtSecret:
    def test_uses_configured_secret(self):
        settings = Settings(jwt_secret="configured", jwt_secret_name=None)
        assert load_jwt_secret(settings) == "configured"

    def test_default_secret_allowed_outside_production(self):
        settings = Settings(
            python_env="development", jwt_secret=INSECURE_DEFAULT_SECRET, jwt_secret_name=None
        )
        assert load_jwt_secret(settings) == INSECURE_DEFAULT_SECRET

    def test_default_secret_refused_in_production(self):
        settings = Settings(
            python_env="production", jwt_secret=INSECURE_DEFAULT_SECRET, jwt_secret_name=None
        )
        with pytest.raises(SecretLoadError):
            load_jwt_secret(settings)

    def test_reads_secrets_manager(self):
        settings = Settings(jwt_secret_name="alumni/jwt", aws_region="ap-east-1")
        client = MagicMock()
        client.get_secret_value.return_value = {"SecretString": "from-aws"}

        with patch("alumni.core.security.boto3.client", return_value=client) as make_client:
            assert load_jwt_secret(settings) == "from-aws"

        make_client.assert_called_once_with("secretsmanager", region_name="ap-east-1")
        client.get_secret_value.assert_called_once_with(SecretId="alumni/jwt")

    def test_secrets_manager_failure_raises(self):
        settings = Settings(jwt_secret_name="alumni/jwt")
        client = MagicMock()
        client.get_secret_value.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}},
            "GetSecretValue",
        )

        with patch("alumni.core.security.boto3.client", return_value=client):
            with pytest.raises(SecretLoadError):
                load_jwt_secret(settings)
