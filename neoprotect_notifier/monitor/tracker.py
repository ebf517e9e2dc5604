"""
Attack Lifecycle Tracker
Turns periodic attack snapshots into new/update/ended events.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

import structlog

from neoprotect_notifier.config.settings import ReappearPolicy
from neoprotect_notifier.domain.entities.attack import Attack, utcnow
from neoprotect_notifier.domain.events.attack_events import AttackEvent, AttackEventType
from neoprotect_notifier.domain.value_objects.ip_address import AddressSet, canonical_address
from neoprotect_notifier.infrastructure.persistence.message_tracker import MessageTracker
from neoprotect_notifier.integrations.manager import IntegrationManager

logger = structlog.get_logger(__name__)

DEFAULT_RETENTION = timedelta(hours=24)


@dataclass
class CycleReport:
    """What one processing cycle did."""

    started_at: datetime
    new: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    ended: list[str] = field(default_factory=list)
    purged: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)
    events: list[AttackEvent] = field(default_factory=list)
    failed_dispatches: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.new or self.updated or self.ended or self.purged)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "new": self.new,
            "updated": self.updated,
            "ended": self.ended,
            "purged": self.purged,
            "ignored": self.ignored,
            "failed_dispatches": self.failed_dispatches,
        }


class AttackTracker:
    """
    State machine over the known-attacks table.

    Each attack id moves through ``unseen -> active -> ended -> purged``.
    The table is owned by this instance and mutated only by ``process``,
    which must not be called concurrently with itself.
    """

    def __init__(
        self,
        manager: IntegrationManager,
        message_tracker: Optional[MessageTracker] = None,
        blacklist: Optional[AddressSet] = None,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] = utcnow,
        reappear_policy: ReappearPolicy = ReappearPolicy.IGNORE,
    ):
        self._manager = manager
        self._messages = message_tracker if message_tracker is not None else manager.message_tracker
        self._blacklist = blacklist if blacklist is not None else AddressSet()
        self._retention = retention
        self._clock = clock
        self._reappear_policy = reappear_policy
        self._known: dict[str, Attack] = {}
        self._reappeared_ids: set[str] = set()

    @property
    def known_attacks(self) -> dict[str, Attack]:
        """Copy of the known-attacks table."""
        return dict(self._known)

    def get(self, attack_id: str) -> Optional[Attack]:
        return self._known.get(attack_id)

    def __len__(self) -> int:
        return len(self._known)

    def _filter(self, snapshot: Iterable[Attack]) -> dict[str, Attack]:
        """Drop invalid and blacklisted records and deduplicate by id."""
        current: dict[str, Attack] = {}
        for attack in snapshot:
            if not attack.is_valid():
                logger.debug("invalid_attack_skipped", attack_id=attack.id, target=attack.target_address)
                continue
            if attack.target_address in self._blacklist:
                logger.debug("blacklisted_attack_skipped", attack_id=attack.id, target=attack.target_address)
                continue
            current[attack.id] = attack
        return current

    async def process(
        self,
        snapshot: Iterable[Attack],
        unreachable: Iterable[str] = (),
    ) -> CycleReport:
        """
        Run one cycle against a complete snapshot.

        Args:
            snapshot: Every attack upstream currently reports
            unreachable: Targets whose fetch failed this cycle; their known
                attacks are neither ended nor otherwise touched

        Returns:
            CycleReport describing the transitions
        """
        now = self._clock()
        report = CycleReport(started_at=now)
        current = self._filter(snapshot)
        skipped_targets = {canonical_address(t) for t in unreachable}

        for attack in current.values():
            await self._classify(attack, now, report)

        for attack_id, known in list(self._known.items()):
            if attack_id in current or not known.is_active:
                continue
            if canonical_address(known.target_address) in skipped_targets:
                continue
            ended = known.copy()
            ended.mark_ended(now)
            self._known[attack_id] = ended
            logger.info("attack_ended", attack_id=attack_id, target=ended.target_address, implicit=True)
            await self._dispatch(AttackEvent.create(AttackEventType.ENDED, ended, timestamp=now), report)
            report.ended.append(attack_id)

        await self._sweep(now, report)

        if report.has_changes:
            logger.info("cycle_processed", **report.to_dict())
        return report

    async def _classify(self, attack: Attack, now: datetime, report: CycleReport) -> None:
        previous = self._known.get(attack.id)

        if previous is None:
            self._known[attack.id] = attack
            if not attack.is_active:
                # First sighting of an already finished attack
                logger.debug("ended_attack_recorded", attack_id=attack.id, target=attack.target_address)
                return
            logger.info("attack_detected", attack_id=attack.id, target=attack.target_address)
            await self._dispatch(AttackEvent.create(AttackEventType.NEW, attack, timestamp=now), report)
            report.new.append(attack.id)
            return

        if not previous.is_active:
            if attack.is_active:
                await self._reappeared(attack, previous, now, report)
            return

        if attack.equals(previous):
            return

        self._known[attack.id] = attack
        if not attack.is_active:
            logger.info("attack_ended", attack_id=attack.id, target=attack.target_address, implicit=False)
            await self._dispatch(
                AttackEvent.create(AttackEventType.ENDED, attack, previous=previous, timestamp=now),
                report,
            )
            report.ended.append(attack.id)
            return

        logger.info("attack_updated", attack_id=attack.id, target=attack.target_address)
        await self._dispatch(
            AttackEvent.create(AttackEventType.UPDATED, attack, previous=previous, timestamp=now),
            report,
        )
        report.updated.append(attack.id)

    async def _reappeared(
        self,
        attack: Attack,
        previous: Attack,
        now: datetime,
        report: CycleReport,
    ) -> None:
        """Handle an ended attack id that upstream reports as active again."""
        if attack.id in self._reappeared_ids and self._reappear_policy == ReappearPolicy.IGNORE:
            report.ignored.append(attack.id)
            return
        self._reappeared_ids.add(attack.id)
        logger.warning(
            "ended_attack_reappeared",
            attack_id=attack.id,
            target=attack.target_address,
            ended_at=previous.ended_at.isoformat() if previous.ended_at else None,
            policy=self._reappear_policy.value,
        )

        if self._reappear_policy == ReappearPolicy.REOPEN:
            self._known[attack.id] = attack
            await self._dispatch(
                AttackEvent.create(AttackEventType.UPDATED, attack, previous=previous, timestamp=now),
                report,
            )
            report.updated.append(attack.id)
        elif self._reappear_policy == ReappearPolicy.NEW_ATTACK:
            await self._messages.forget(attack.id)
            self._known[attack.id] = attack
            await self._dispatch(AttackEvent.create(AttackEventType.NEW, attack, timestamp=now), report)
            report.new.append(attack.id)
        else:
            report.ignored.append(attack.id)

    async def _dispatch(self, event: AttackEvent, report: CycleReport) -> None:
        report.events.append(event)
        error = await self._manager.dispatch(event)
        if error is not None:
            report.failed_dispatches += 1
            logger.warning(
                "notification_incomplete",
                event_type=event.event_type.value,
                attack_id=event.attack_id,
                error=str(error),
            )

    async def _sweep(self, now: datetime, report: CycleReport) -> None:
        """Purge attacks that ended longer ago than the retention window."""
        for attack_id, attack in list(self._known.items()):
            if attack.ended_at is None or now - attack.ended_at <= self._retention:
                continue
            del self._known[attack_id]
            self._reappeared_ids.discard(attack_id)
            await self._messages.forget(attack_id)
            logger.info("attack_purged", attack_id=attack_id, target=attack.target_address)
            report.purged.append(attack_id)
