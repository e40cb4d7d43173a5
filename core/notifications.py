import logging
import re

from django.conf import settings
from django.core.mail import send_mail
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r'^\+\d{9,15}$')


def _send_email(user, subject, email_message):
    if not user.email:
        return
    try:
        send_mail(
            subject=subject,
            message=email_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
            fail_silently=False,
        )
        logger.info(f"Email notification sent to user {user.id}")
    except Exception as e:
        logger.error(f"Failed to send email to user {user.id}: {str(e)}")


def send_notification(user, subject, email_message, sms_message):
    """
    Notify a user by email and, when they have a usable phone number, by SMS.

    Notifications never affect the operation that triggered them: every
    failure is logged and swallowed.
    """
    if user is None:
        return

    _send_email(user, subject, email_message)

    if not user.phone_number:
        return
    if not PHONE_PATTERN.match(user.phone_number):
        logger.warning(f"Invalid phone number format for user {user.id}: {user.phone_number}")
        return
    if not settings.TWILIO_ACCOUNT_SID:
        logger.debug(f"Twilio is not configured, skipping SMS to user {user.id}")
        return

    try:
        twilio_client = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        twilio_client.messages.create(
            body=sms_message,
            from_=settings.TWILIO_PHONE_NUMBER,
            to=user.phone_number
        )
        logger.info(f"SMS notification sent to user {user.id}")
    except TwilioException as e:
        logger.error(f"Failed to send SMS to {user.phone_number}: {str(e)}")
