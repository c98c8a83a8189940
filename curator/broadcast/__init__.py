"""Direct email and in-app announcements."""

from curator.broadcast.announcements import AnnouncementNotFound, Broadcaster, EmailOutcome
from curator.broadcast.mailer import ResendMailer

__all__ = ["AnnouncementNotFound", "Broadcaster", "EmailOutcome", "ResendMailer"]
