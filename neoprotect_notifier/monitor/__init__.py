"""Attack monitoring: lifecycle tracker and polling loop."""

from neoprotect_notifier.monitor.poller import AttackPoller
from neoprotect_notifier.monitor.tracker import AttackTracker, CycleReport

__all__ = [
    "AttackPoller",
    "AttackTracker",
    "CycleReport",
]
