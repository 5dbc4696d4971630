"""SMTP delivery for check-in notifications."""

from .client import MailDeliveryError, build_message, send_message
from .config import SmtpConfig, get_smtp_config

__all__ = ["MailDeliveryError", "SmtpConfig", "build_message", "get_smtp_config", "send_message"]
