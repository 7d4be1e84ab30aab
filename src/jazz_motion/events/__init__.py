"""Event sub-package — listener registration and ordered delivery."""

from jazz_motion.events.bus import EventBus, EventRecorder, Listener

__all__ = ["EventBus", "EventRecorder", "Listener"]
