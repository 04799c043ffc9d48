"""
SMS Service using Amazon SNS

Sends the text messages of the registration and approval flow.
When SMS_ENABLED is false, messages are logged instead of sent.
"""

import asyncio
import logging
from functools import lru_cache

import boto3

from alumni.core.config import settings

logger = logging.getLogger(__name__)


class SmsDeliveryError(RuntimeError):
    """Raised when the SMS provider rejects or fails a message."""


@lru_cache(maxsize=1)
def _get_sns_client():
    return boto3.client("sns", region_name=settings.aws_region)


def _mask_phone(phone_number: str) -> str:
    """Mask all but the last four digits of a phone number for logs."""
    if len(phone_number) <= 4:
        return "****"
    return f"{'*' * (len(phone_number) - 4)}{phone_number[-4:]}"


async def send_sms(phone_number: str, message: str) -> str | None:
    """
    Send a transactional SMS.

    Args:
        phone_number: Recipient in E.164 format
        message: Message body

    Returns:
        The provider message id, or None when sending is disabled

    Raises:
        SmsDeliveryError: If the provider call fails
    """
    if not settings.sms_enabled:
        logger.warning("SMS_ENABLED is false - logging SMS instead of sending")
        logger.info(f"SMS TO: {_mask_phone(phone_number)} | LENGTH: {len(message)}")
        return None

    client = _get_sns_client()
    try:
        # boto3 is synchronous; keep it off the event loop
        response = await asyncio.to_thread(
            client.publish,
            PhoneNumber=phone_number,
            Message=message,
            MessageAttributes={
                "AWS.SNS.SMS.SMSType": {
                    "DataType": "String",
                    "StringValue": "Transactional",
                },
            },
        )
    except Exception as e:
        logger.error(f"Failed to send SMS to {_mask_phone(phone_number)}: {e}")
        raise SmsDeliveryError("Failed to send SMS") from e

    message_id = response.get("MessageId")
    logger.info(f"SMS sent to {_mask_phone(phone_number)}, id: {message_id}")
    return message_id


async def send_verification_code(phone_number: str, code: str) -> str | None:
    """Send a registration verification code."""
    message = (
        f"Your {settings.sms_app_name} verification code is: {code}. "
        "Valid for 5 minutes."
    )
    return await send_sms(phone_number, message)


async def send_approval_notice(phone_number: str, name: str | None = None) -> str | None:
    """Tell a user their account was approved."""
    greeting = f"Hi {name}! " if name else ""
    message = (
        f"{greeting}Your {settings.sms_app_name} account has been approved. "
        "You can now log in."
    )
    return await send_sms(phone_number, message)


async def send_rejection_notice(phone_number: str, reason: str) -> str | None:
    """Tell a user their registration was not approved."""
    message = (
        f"Your {settings.sms_app_name} registration was not approved. Reason: {reason}"
    )
    return await send_sms(phone_number, message)
