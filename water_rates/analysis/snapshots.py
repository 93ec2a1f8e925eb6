#!/usr/bin/env python3
"""
Scenario snapshot history for the compare panel.
Keeps the last few captured (usage, revenue) pairs and reports changes between them.
"""

import datetime
from typing import List, Optional

import pandas as pd

from water_rates.config.parameters import SNAPSHOT_LIMIT
from water_rates.simulation.models import Snapshot


class SnapshotHistory:
    """
    Bounded, in-memory history of captured scenario totals.

    Capturing never touches the baseline; callers that want a capture to
    also freeze the baseline call ``freeze_baseline`` themselves.
    """

    def __init__(self, limit: int = SNAPSHOT_LIMIT):
        self.limit = max(1, int(limit))
        self._snapshots: List[Snapshot] = []
        self._count = 0

    def __len__(self):
        return len(self._snapshots)

    @property
    def snapshots(self) -> List[Snapshot]:
        return list(self._snapshots)

    @property
    def latest(self) -> Optional[Snapshot]:
        return self._snapshots[-1] if self._snapshots else None

    @property
    def previous(self) -> Optional[Snapshot]:
        return self._snapshots[-2] if len(self._snapshots) > 1 else None

    def capture(self, usage_mg: float, revenue: float) -> Snapshot:
        self._count += 1
        snap = Snapshot(usage_mg=float(usage_mg), revenue=float(revenue),
                        timestamp=datetime.datetime.now(), label=f"v{self._count}")
        self._snapshots.append(snap)
        if len(self._snapshots) > self.limit:
            self._snapshots = self._snapshots[1:]
        return snap

    def undo(self) -> Optional[Snapshot]:
        """Drop the most recent snapshot and return the new latest, if any."""
        if self._snapshots:
            self._snapshots.pop()
            self._count = max(0, self._count - 1)
        return self.latest

    def clear(self):
        self._snapshots = []
        self._count = 0

    def percent_change(self, metric: str) -> Optional[float]:
        """
        Percent change of the latest snapshot against the one before it.

        Args:
            metric: "usage_mg" or "revenue"

        Returns:
            Percent difference, or None without a non-zero previous value
        """
        if self.latest is None or self.previous is None:
            return None
        prev = getattr(self.previous, metric)
        if prev == 0:
            return None
        return (getattr(self.latest, metric) - prev) / prev * 100

    def recent_frame(self, n: int = 5) -> pd.DataFrame:
        recent = self._snapshots[-n:]
        return pd.DataFrame({
            "label": [s.label for s in recent],
            "usage_mg": [round(s.usage_mg, 2) for s in recent],
            "revenue": [round(s.revenue, 0) for s in recent],
        })
