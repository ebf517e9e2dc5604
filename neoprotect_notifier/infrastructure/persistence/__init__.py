"""In-memory state stores."""

from neoprotect_notifier.infrastructure.persistence.message_tracker import MessageTracker

__all__ = ["MessageTracker"]
