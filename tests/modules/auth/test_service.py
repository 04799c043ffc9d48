"""
Unit tests for the auth service layer.

These tests cover:
- Registration (validation, duplicates, rate limiting, SMS delivery)
- Code verification and account creation
- Admin approval and rejection
- Best-effort review notifications
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from alumni.core.exceptions import RateLimitExceededError
from alumni.core.sms import SmsDeliveryError
from alumni.modules.auth.helpers import hash_phone_number
from alumni.modules.auth.models import ApprovalStatus
from alumni.modules.auth.service import (
    CODE_EXPIRY_SECONDS,
    DEFAULT_REJECTION_REASON,
    InvalidAccountStateError,
    InvalidPhoneNumberError,
    InvalidVerificationCodeError,
    PhoneAlreadyRegisteredError,
    TooManyAttemptsError,
    VerificationCodeExpiredError,
    VerificationCodeNotFoundError,
    VerificationCodeUsedError,
    approve,
    register,
    reject,
    verify,
)
from alumni.modules.users.models import UserStatus
from alumni.modules.users.service import UserNotFoundError

SERVICE = "alumni.modules.auth.service"


class TestRegister:
    """Tests for register function."""

    @pytest.mark.asyncio
    async def test_register_invalid_phone(self, mock_db):
        """Numbers that are not E.164 are rejected before any lookup."""
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_phone_hash = AsyncMock()

            with pytest.raises(InvalidPhoneNumberError) as exc_info:
                await register(mock_db, "91234567", "Chan Tai Man")

            assert exc_info.value.status_code == 400
            mock_users.get_by_phone_hash.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_existing_account(self, mock_db, phone_number, pending_user):
        """A phone with an account cannot register again."""
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.sms") as mock_sms,
        ):
            mock_users.get_by_phone_hash = AsyncMock(return_value=pending_user)
            mock_repo.upsert_verification_code = AsyncMock()
            mock_sms.send_verification_code = AsyncMock()

            with pytest.raises(PhoneAlreadyRegisteredError) as exc_info:
                await register(mock_db, phone_number, "Chan Tai Man")

            assert exc_info.value.status_code == 409
            mock_repo.upsert_verification_code.assert_not_called()
            mock_sms.send_verification_code.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_success(self, mock_db):
        """Stores a fresh code for the normalized phone and sends it by SMS."""
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.sms") as mock_sms,
            patch(f"{SERVICE}.generate_verification_code", return_value="654321"),
        ):
            mock_users.get_by_phone_hash = AsyncMock(return_value=None)
            mock_repo.upsert_verification_code = AsyncMock()
            mock_sms.send_verification_code = AsyncMock()

            result = await register(mock_db, "+852 9123 4567", "  Chan Tai Man  ")

            assert result.message == "Verification code sent"
            assert result.expires_in == CODE_EXPIRY_SECONDS

            kwargs = mock_repo.upsert_verification_code.call_args.kwargs
            assert kwargs["phone_number"] == "+85291234567"
            assert kwargs["phone_number_hash"] == hash_phone_number("+85291234567")
            assert kwargs["name"] == "Chan Tai Man"
            assert kwargs["code"] == "654321"
            assert kwargs["max_attempts"] == 3
            assert kwargs["expires_at"] - kwargs["created_at"] == timedelta(seconds=300)

            mock_db.commit.assert_called_once()
            mock_sms.send_verification_code.assert_called_once_with("+85291234567", "654321")

    @pytest.mark.asyncio
    async def test_register_rate_limited(self, mock_db, phone_number):
        """Too many registrations for one phone are refused."""
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.check_rate_limit", AsyncMock(return_value=False)),
        ):
            mock_users.get_by_phone_hash = AsyncMock(return_value=None)
            mock_repo.upsert_verification_code = AsyncMock()

            with pytest.raises(RateLimitExceededError) as exc_info:
                await register(mock_db, phone_number, "Chan Tai Man")

            assert exc_info.value.status_code == 429
            mock_repo.upsert_verification_code.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_sms_failure_propagates(self, mock_db, phone_number):
        """A delivery failure surfaces to the caller."""
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.sms") as mock_sms,
        ):
            mock_users.get_by_phone_hash = AsyncMock(return_value=None)
            mock_repo.upsert_verification_code = AsyncMock()
            mock_sms.send_verification_code = AsyncMock(side_effect=SmsDeliveryError("down"))

            with pytest.raises(SmsDeliveryError):
                await register(mock_db, phone_number, "Chan Tai Man")


class TestVerify:
    """Tests for verify function."""

    @pytest.mark.asyncio
    async def test_verify_no_code(self, mock_db, token_service, phone_number):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_verification_code = AsyncMock(return_value=None)

            with pytest.raises(VerificationCodeNotFoundError):
                await verify(mock_db, token_service, phone_number, "123456")

    @pytest.mark.asyncio
    async def test_verify_expired(self, mock_db, token_service, phone_number, verification_code):
        verification_code.expires_at = datetime.now(UTC) - timedelta(seconds=1)
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_verification_code = AsyncMock(return_value=verification_code)

            with pytest.raises(VerificationCodeExpiredError):
                await verify(mock_db, token_service, phone_number, "123456")

    @pytest.mark.asyncio
    async def test_verify_naive_expiry_treated_as_utc(
        self, mock_db, token_service, phone_number, verification_code
    ):
        """Databases without timezone support return naive datetimes."""
        verification_code.expires_at = (datetime.now(UTC) - timedelta(minutes=1)).replace(
            tzinfo=None
        )
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_verification_code = AsyncMock(return_value=verification_code)

            with pytest.raises(VerificationCodeExpiredError):
                await verify(mock_db, token_service, phone_number, "123456")

    @pytest.mark.asyncio
    async def test_verify_already_used(
        self, mock_db, token_service, phone_number, verification_code
    ):
        verification_code.verified = True
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_verification_code = AsyncMock(return_value=verification_code)

            with pytest.raises(VerificationCodeUsedError):
                await verify(mock_db, token_service, phone_number, "123456")

    @pytest.mark.asyncio
    async def test_verify_attempts_exhausted(
        self, mock_db, token_service, phone_number, verification_code
    ):
        """Once the limit is reached even the right code is refused."""
        verification_code.attempts = 3
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_verification_code = AsyncMock(return_value=verification_code)
            mock_repo.consume_verification_code = AsyncMock()

            with pytest.raises(TooManyAttemptsError):
                await verify(mock_db, token_service, phone_number, "123456")

            mock_repo.consume_verification_code.assert_not_called()

    @pytest.mark.asyncio
    async def test_verify_wrong_code_counts_attempt(
        self, mock_db, token_service, phone_number, verification_code
    ):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_verification_code = AsyncMock(return_value=verification_code)
            mock_repo.increment_attempts = AsyncMock(return_value=True)

            with pytest.raises(InvalidVerificationCodeError) as exc_info:
                await verify(mock_db, token_service, phone_number, "000000")

            assert exc_info.value.message == "Invalid verification code"
            assert "attempt" not in exc_info.value.message
            mock_repo.increment_attempts.assert_called_once_with(
                mock_db, hash_phone_number(phone_number)
            )
            mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_verify_last_wrong_attempt(
        self, mock_db, token_service, phone_number, verification_code
    ):
        verification_code.attempts = 2
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_verification_code = AsyncMock(return_value=verification_code)
            mock_repo.increment_attempts = AsyncMock(return_value=True)

            with pytest.raises(InvalidVerificationCodeError) as exc_info:
                await verify(mock_db, token_service, phone_number, "000000")

            assert exc_info.value.message == "Invalid verification code"
            mock_repo.increment_attempts.assert_called_once()

    @pytest.mark.asyncio
    async def test_verify_success(
        self, mock_db, token_service, phone_number, verification_code, pending_user
    ):
        """Creates a pending account with its approval request and issues a token."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_verification_code = AsyncMock(return_value=verification_code)
            mock_repo.consume_verification_code = AsyncMock(return_value=True)
            mock_repo.create_pending_approval = AsyncMock()
            mock_users.create = AsyncMock(return_value=pending_user)

            result = await verify(mock_db, token_service, phone_number, "123456")

            assert result.user_id == pending_user.id
            assert result.status == UserStatus.PENDING_APPROVAL

            payload = token_service.verify(result.token)
            assert payload.user_id == pending_user.id
            assert payload.phone_number == phone_number
            assert payload.status == "pending_approval"
            assert payload.role == "user"
            assert result.expires_at == payload.expires_at

            create_kwargs = mock_users.create.call_args.kwargs
            assert create_kwargs["name"] == "Chan Tai Man"
            assert create_kwargs["status"] == UserStatus.PENDING_APPROVAL
            approval_kwargs = mock_repo.create_pending_approval.call_args.kwargs
            assert approval_kwargs["user_id"] == pending_user.id
            mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_verify_consume_race_lost(
        self, mock_db, token_service, phone_number, verification_code
    ):
        """A concurrent verify consumed the code first."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_verification_code = AsyncMock(return_value=verification_code)
            mock_repo.consume_verification_code = AsyncMock(return_value=False)
            mock_users.create = AsyncMock()

            with pytest.raises(VerificationCodeUsedError):
                await verify(mock_db, token_service, phone_number, "123456")

            mock_users.create.assert_not_called()
            mock_db.rollback.assert_called_once()

    @pytest.mark.asyncio
    async def test_verify_duplicate_account(
        self, mock_db, token_service, phone_number, verification_code
    ):
        """A unique violation on the phone hash maps to a conflict."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_verification_code = AsyncMock(return_value=verification_code)
            mock_repo.consume_verification_code = AsyncMock(return_value=True)
            mock_users.create = AsyncMock(
                side_effect=IntegrityError("INSERT", {}, Exception("duplicate"))
            )

            with pytest.raises(PhoneAlreadyRegisteredError):
                await verify(mock_db, token_service, phone_number, "123456")

            mock_db.rollback.assert_called_once()
            mock_db.commit.assert_not_called()


class TestApprove:
    """Tests for approve function."""

    @pytest.mark.asyncio
    async def test_approve_user_not_found(self, mock_db, admin_id):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(UserNotFoundError) as exc_info:
                await approve(mock_db, uuid4(), admin_id)

            assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_approve_not_pending(self, mock_db, admin_id, pending_user):
        pending_user.status = UserStatus.ACTIVE
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_id = AsyncMock(return_value=pending_user)
            mock_users.transition_status = AsyncMock()

            with pytest.raises(InvalidAccountStateError) as exc_info:
                await approve(mock_db, pending_user.id, admin_id)

            assert exc_info.value.message == "User is not pending approval (status: active)"
            mock_users.transition_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_approve_success(self, mock_db, admin_id, pending_user):
        """Activates the account, closes the request and notifies the user."""
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.sms") as mock_sms,
        ):
            mock_users.get_by_id = AsyncMock(return_value=pending_user)
            mock_users.transition_status = AsyncMock(return_value=True)
            mock_repo.mark_reviewed = AsyncMock(return_value=True)
            mock_repo.mark_notification_sent = AsyncMock()
            mock_sms.send_approval_notice = AsyncMock()

            result = await approve(mock_db, pending_user.id, admin_id)

            assert result.message == "User approved successfully"
            assert result.user_id == pending_user.id

            transition = mock_users.transition_status.call_args.kwargs
            assert transition["from_status"] == UserStatus.PENDING_APPROVAL
            assert transition["to_status"] == UserStatus.ACTIVE
            assert transition["reviewed_by"] == admin_id

            review = mock_repo.mark_reviewed.call_args.kwargs
            assert review["status"] == ApprovalStatus.APPROVED
            assert review["rejection_reason"] is None

            mock_sms.send_approval_notice.assert_called_once_with(
                pending_user.phone_number, "Chan Tai Man"
            )
            mock_repo.mark_notification_sent.assert_called_once_with(mock_db, pending_user.id)

    @pytest.mark.asyncio
    async def test_approve_lost_race(self, mock_db, admin_id, pending_user):
        """Only one of two concurrent reviews wins."""
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.sms") as mock_sms,
        ):
            rejected = AsyncMock()
            rejected.status = UserStatus.REJECTED
            mock_users.get_by_id = AsyncMock(side_effect=[pending_user, rejected])
            mock_users.transition_status = AsyncMock(return_value=False)
            mock_repo.mark_reviewed = AsyncMock()
            mock_sms.send_approval_notice = AsyncMock()

            with pytest.raises(InvalidAccountStateError) as exc_info:
                await approve(mock_db, pending_user.id, admin_id)

            assert "status: rejected" in exc_info.value.message
            mock_db.rollback.assert_called_once()
            mock_repo.mark_reviewed.assert_not_called()
            mock_sms.send_approval_notice.assert_not_called()

    @pytest.mark.asyncio
    async def test_approve_notification_failure_is_swallowed(
        self, mock_db, admin_id, pending_user
    ):
        """The approval stands even if the SMS cannot be sent."""
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.sms") as mock_sms,
        ):
            mock_users.get_by_id = AsyncMock(return_value=pending_user)
            mock_users.transition_status = AsyncMock(return_value=True)
            mock_repo.mark_reviewed = AsyncMock(return_value=True)
            mock_repo.mark_notification_sent = AsyncMock()
            mock_sms.send_approval_notice = AsyncMock(side_effect=SmsDeliveryError("down"))

            result = await approve(mock_db, pending_user.id, admin_id)

            assert result.message == "User approved successfully"
            mock_repo.mark_notification_sent.assert_not_called()
            mock_db.commit.assert_called_once()
            mock_db.rollback.assert_called_once()


class TestReject:
    """Tests for reject function."""

    @pytest.mark.asyncio
    async def test_reject_with_reason(self, mock_db, admin_id, pending_user):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.sms") as mock_sms,
        ):
            mock_users.get_by_id = AsyncMock(return_value=pending_user)
            mock_users.transition_status = AsyncMock(return_value=True)
            mock_repo.mark_reviewed = AsyncMock(return_value=True)
            mock_repo.mark_notification_sent = AsyncMock()
            mock_sms.send_rejection_notice = AsyncMock()

            result = await reject(mock_db, pending_user.id, admin_id, "Not an alumnus")

            assert result.message == "User rejected"
            assert result.reason == "Not an alumnus"
            assert mock_users.transition_status.call_args.kwargs["to_status"] == (
                UserStatus.REJECTED
            )
            review = mock_repo.mark_reviewed.call_args.kwargs
            assert review["status"] == ApprovalStatus.REJECTED
            assert review["rejection_reason"] == "Not an alumnus"
            mock_sms.send_rejection_notice.assert_called_once_with(
                pending_user.phone_number, "Not an alumnus"
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", [None, "", "   "])
    async def test_reject_default_reason(self, mock_db, admin_id, pending_user, reason):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.sms") as mock_sms,
        ):
            mock_users.get_by_id = AsyncMock(return_value=pending_user)
            mock_users.transition_status = AsyncMock(return_value=True)
            mock_repo.mark_reviewed = AsyncMock(return_value=True)
            mock_repo.mark_notification_sent = AsyncMock()
            mock_sms.send_rejection_notice = AsyncMock()

            result = await reject(mock_db, pending_user.id, admin_id, reason)

            assert result.reason == DEFAULT_REJECTION_REASON

    @pytest.mark.asyncio
    async def test_reject_already_rejected(self, mock_db, admin_id, pending_user):
        pending_user.status = UserStatus.REJECTED
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_id = AsyncMock(return_value=pending_user)

            with pytest.raises(InvalidAccountStateError):
                await reject(mock_db, pending_user.id, admin_id)
