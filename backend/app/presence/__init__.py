"""Background eviction of inactive participants."""

from .reaper import PresenceReaper

__all__ = ["PresenceReaper"]
