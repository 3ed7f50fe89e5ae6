"""
Notification service

Composes pledge notifications and hands them to a sender. Delivery is not
implemented; the default sender only logs what it would send.
"""
import logging
from abc import ABC, abstractmethod

from app.models.pledge import Pledge
from app.models.user import Patient

logger = logging.getLogger(__name__)


class NotificationSender(ABC):
    """Outbound message channel."""

    @abstractmethod
    async def send(self, to: str, subject: str, body: str) -> None:
        """
        Send one message.

        Raises:
            NotificationError: If the message cannot be delivered
        """


class LoggingNotificationSender(NotificationSender):
    """Sender that records messages in the log instead of delivering them."""

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Email delivery disabled, would send to %s: %s", to, subject)
        logger.debug("Content: %s", body[:200])


def patient_pledge_message(pledge: Pledge, patient: Patient) -> tuple[str, str]:
    """Subject and body telling a patient about a new pledge."""
    challenge = pledge.metric_type or "Health Goal"
    subject = f"New Health Challenge: {challenge}"
    intro = pledge.message or "Your healthcare provider has created a new health challenge for you!"
    body = "\n".join([
        f"Hi {patient.name},",
        "",
        intro,
        "",
        f"Goal: {challenge}",
        f"Target: {pledge.target or 'Improve health metrics'}",
        f"Duration: {pledge.duration} days",
        f"Reward: {pledge.amount} RDM, released automatically on successful completion.",
        "",
        "Log in to your patient portal to accept the challenge and track your progress.",
        "",
        pledge.provider_name,
    ])
    return subject, body


def provider_pledge_message(pledge: Pledge, patient: Patient, requested_id: str) -> tuple[str, str]:
    """Subject and body confirming a pledge to the provider who issued it."""
    subject = f"Pledge Created: {patient.name} - {pledge.amount} RDM"
    body = "\n".join([
        "Your pledge has been created and the patient has been notified.",
        "",
        f"Patient: {patient.name} (ID: {requested_id})",
        f"Challenge: {pledge.metric_type or 'Health Goal'}",
        f"Target: {pledge.target or 'N/A'}",
        f"Duration: {pledge.duration} days",
        f"RDM Amount: {pledge.amount} RDM (Locked in Escrow)",
        "Status: Pending patient acceptance",
    ])
    return subject, body


async def get_notification_sender() -> NotificationSender:
    """Dependency to get the notification sender."""
    return LoggingNotificationSender()
