"""
Attack Diff Value Object
Field-level differences between two snapshots of the same attack.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from neoprotect_notifier.domain.entities.attack import Attack


@dataclass(frozen=True)
class AttackDiff:
    """
    Differences between a current and a previous attack snapshot.

    Attributes:
        ended: The attack transitioned to ended in this step
        duration: Resulting duration when ``ended`` is set
        bps_peak_change: Signed change of the peak bps, None if unchanged
        bps_peak_current: New absolute peak bps, None if unchanged
        pps_peak_change: Signed change of the peak pps, None if unchanged
        pps_peak_current: New absolute peak pps, None if unchanged
        new_signatures: Names of signatures whose id was not in the previous snapshot
    """

    ended: bool = False
    duration: Optional[timedelta] = None
    bps_peak_change: Optional[int] = None
    bps_peak_current: Optional[int] = None
    pps_peak_change: Optional[int] = None
    pps_peak_current: Optional[int] = None
    new_signatures: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to report."""
        return not (
            self.ended
            or self.bps_peak_change is not None
            or self.pps_peak_change is not None
            or self.new_signatures
        )

    def __bool__(self) -> bool:
        return not self.is_empty

    def to_dict(self) -> dict:
        """Convert to the payload vocabulary used by notifications."""
        data: dict = {}
        if self.ended:
            data["ended"] = True
            if self.duration is not None:
                data["duration"] = str(self.duration)
                data["durationSeconds"] = int(self.duration.total_seconds())
        if self.bps_peak_change is not None:
            data["bpsPeakChange"] = self.bps_peak_change
            data["bpsPeakCurrent"] = self.bps_peak_current
        if self.pps_peak_change is not None:
            data["ppsPeakChange"] = self.pps_peak_change
            data["ppsPeakCurrent"] = self.pps_peak_current
        if self.new_signatures:
            data["newSignatures"] = list(self.new_signatures)
        return data


def calculate_diff(current: Optional[Attack], previous: Optional[Attack]) -> AttackDiff:
    """
    Calculate the differences between ``current`` and ``previous``.

    Only defined for two snapshots of the same attack; any other input
    yields an empty diff.
    """
    if current is None or previous is None or current.id != previous.id:
        return AttackDiff()

    ended = previous.is_active and not current.is_active

    bps_change = bps_current = None
    if current.peak_bps != previous.peak_bps:
        bps_change = current.peak_bps - previous.peak_bps
        bps_current = current.peak_bps

    pps_change = pps_current = None
    if current.peak_pps != previous.peak_pps:
        pps_change = current.peak_pps - previous.peak_pps
        pps_current = current.peak_pps

    previous_ids = {s.id for s in previous.signatures}
    new_signatures = tuple(s.name for s in current.signatures if s.id not in previous_ids)

    return AttackDiff(
        ended=ended,
        duration=current.duration() if ended else None,
        bps_peak_change=bps_change,
        bps_peak_current=bps_current,
        pps_peak_change=pps_change,
        pps_peak_current=pps_current,
        new_signatures=new_signatures,
    )
