"""SMS sender adapters."""

from .console import ConsoleSmsSender
from .twilio import TwilioSmsSender

__all__ = ["ConsoleSmsSender", "TwilioSmsSender"]
