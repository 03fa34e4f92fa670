"""Accessibility module for civicchat.

Keeps the live status region in step with the conversation.
"""

from .announcer import AnnouncementSink, Announcements, LiveAnnouncer

__all__ = [
    "AnnouncementSink",
    "Announcements",
    "LiveAnnouncer",
]
