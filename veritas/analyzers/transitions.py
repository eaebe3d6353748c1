"""
Transition Tracker — Time-Gated Emotion Change Detection
=========================================================
Compares each emotion sample with the previous one and keeps the changes
that happened inside the physiologically plausible window.

Timing rules (elapsed time since the previous sample):

    < 50 ms        too fast (sensor noise), ignored
    100 – 200 ms   valid (inclusive on both ends)
    anything else  outside the optimal window

Only valid transitions are returned and retained; the ring keeps the
newest ``capacity`` of them.  Changes below the ultra-weak threshold (1%)
are not considered at all.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from veritas.core.emotions import EMOTIONS, EmotionVector
from veritas.core.models import TransitionRecord
from veritas.utils.ring_buffer import RingBuffer
from veritas.utils.helpers import format_percentage, load_config, setup_logging

logger = setup_logging()


class TransitionTracker:
    """Session-scoped rolling state over consecutive emotion samples."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()
        cfg = config["transitions"]
        self.ultra_weak_change = cfg["ultra_weak_change"]
        self.too_fast_ms = cfg["too_fast_ms"]
        self.min_window_ms = cfg["min_window_ms"]
        self.max_window_ms = cfg["max_window_ms"]
        self.consecutive_window_ms = cfg["consecutive_window_ms"]
        self.significant_change = cfg["significant_change"]
        self.clear_change = cfg["clear_change"]
        self.description_tiers = cfg["description_tiers"]

        self.history: RingBuffer[TransitionRecord] = RingBuffer(cfg["capacity"])
        self.previous: Optional[EmotionVector] = None
        self.last_update: Optional[float] = None
        self.last_valid: Optional[TransitionRecord] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def observe(self, vector: EmotionVector, now: float) -> list[TransitionRecord]:
        """Record ``vector`` seen at ``now`` (ms); return this call's valid transitions."""
        if self.previous is None:
            self.previous = vector
            self.last_update = now
            return []

        elapsed = now - self.last_update
        deltas = np.abs(vector.as_array() - self.previous.as_array())

        valid: list[TransitionRecord] = []
        for emotion, change in zip(EMOTIONS, deltas):
            change = float(change)
            if change < self.ultra_weak_change:
                continue

            before = self.previous[emotion]
            after = vector[emotion]
            direction = "rise" if after > before else "fall"
            is_valid = self.min_window_ms <= elapsed <= self.max_window_ms

            if elapsed < self.too_fast_ms:
                significance = f"too fast ({elapsed:.0f}ms) - ignored"
            elif is_valid:
                significance = (
                    f"{self._tier(change)} {direction} ({elapsed:.0f}ms)"
                )
                if (
                    self.last_valid is not None
                    and now - self.last_valid.timestamp < self.consecutive_window_ms
                ):
                    significance += " - part of a consecutive run"
            else:
                significance = f"outside optimal window ({elapsed:.0f}ms)"

            record = TransitionRecord(
                emotion=emotion,
                intensity_before=before,
                intensity_after=after,
                timestamp=now,
                elapsed_ms=elapsed,
                magnitude=change,
                is_valid=is_valid,
                significance=significance,
            )

            if is_valid:
                self.last_valid = record
                valid.append(record)
            else:
                logger.debug("Rejected %s transition: %s", emotion.value, significance)

        self.previous = vector
        self.last_update = now
        self.history.extend(valid)
        return valid

    def describe(self, record: TransitionRecord) -> str:
        """One-line observation-log description of a transition."""
        label = self.description_tiers[-1]["label"]
        for tier in self.description_tiers:
            if record.magnitude >= tier["min"]:
                label = tier["label"]
                break
        return (
            f"{label} in {record.emotion.value}: "
            f"{format_percentage(record.intensity_before)} → "
            f"{format_percentage(record.intensity_after)} ({record.direction})"
        )

    def reset(self) -> None:
        self.history.clear()
        self.previous = None
        self.last_update = None
        self.last_valid = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _tier(self, change: float) -> str:
        if change >= self.significant_change:
            return "significant"
        if change >= self.clear_change:
            return "clear"
        return "slight"
