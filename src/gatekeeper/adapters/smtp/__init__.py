"""Email sender adapters."""

from .console import ConsoleEmailSender
from .mailersend import MailerSendEmailSender

__all__ = ["ConsoleEmailSender", "MailerSendEmailSender"]
