"""
Micro-Expression Detector — Short-Lived Emotion Spikes
=======================================================
Flags every non-neutral emotion that registers above the ultra-weak
micro threshold (0.5%) and groups spikes that start within one second of
each other into a *sequence*.

Sequence ids come from a counter owned by the detector instance (one per
session), so two sessions never share or race on ids.

Duration is measured from the oldest buffered spike, capped at 500 ms.
It is a rough session-elapsed proxy rather than a true per-emotion
duration; the wording of the significance text depends on it.

``analyze_sequence()`` is the second pass: it looks at the last three
seconds of spikes for rapid transitions, deception-suggestive orderings
and repeated emotions.
"""

from __future__ import annotations

from collections import Counter
from typing import Optional

from veritas.core.emotions import Emotion, EmotionVector
from veritas.core.models import MicroExpression
from veritas.utils.ring_buffer import RingBuffer
from veritas.utils.helpers import load_config, setup_logging

logger = setup_logging()

# Intensity wording, checked top-down
_INTENSITY_TIERS = [
    (0.5, "very strong"),
    (0.3, "strong"),
    (0.1, "moderate"),
    (0.05, "weak"),
]
_FLOOR_TIER = "very weak"

_INTERPRETATIONS = {
    Emotion.NEUTRAL: "",
    Emotion.HAPPY: "",
    Emotion.SAD: "possible emotional conflict",
    Emotion.ANGRY: "possible aversion signal",
    Emotion.FEARFUL: "possible anxiety signal",
    Emotion.DISGUSTED: "possible discomfort signal",
    Emotion.SURPRISED: "possible unprepared reaction",
}


def micro_expression_significance(
    emotion: Emotion,
    intensity: float,
    duration_ms: Optional[float] = None,
) -> str:
    """Human-readable reading of a spike, e.g. 'strong, momentary - possible anxiety signal'."""
    significance = _FLOOR_TIER
    for threshold, label in _INTENSITY_TIERS:
        if intensity >= threshold:
            significance = label
            break

    if duration_ms is not None:
        if duration_ms < 100:
            significance += ", momentary"
        elif duration_ms < 250:
            significance += ", short-lived"
        else:
            significance += ", persistent"

    interpretation = _INTERPRETATIONS[Emotion(emotion)]
    if interpretation:
        significance += f" - {interpretation}"
    return significance


class MicroExpressionDetector:
    """Session-scoped micro-expression history with sequence grouping."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()
        cfg = config["micro_expressions"]
        self.detection_threshold = cfg["detection_threshold"]
        self.max_duration_ms = cfg["max_duration_ms"]
        self.sequence_window_ms = cfg["sequence_window_ms"]
        self.analysis_window_ms = cfg["analysis_window_ms"]
        self.rapid_transition_ms = cfg["rapid_transition_ms"]
        self.repeat_count = cfg["repeat_count"]
        self.suspicious_sequences = {
            (Emotion(a), Emotion(b)) for a, b in cfg["suspicious_sequences"]
        }

        self.history: RingBuffer[MicroExpression] = RingBuffer(cfg["capacity"])
        self.last_sequence_id = 0

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect(self, vector: EmotionVector, now: float) -> list[MicroExpression]:
        """Register every qualifying non-neutral spike in ``vector`` at ``now``."""
        detected = []
        for emotion, intensity in vector.items():
            if emotion is Emotion.NEUTRAL or intensity <= 0:
                continue
            expression = self.register(emotion, intensity, now)
            if expression is not None:
                detected.append(expression)
        return detected

    def register(
        self,
        emotion: Emotion,
        intensity: float,
        now: float,
    ) -> Optional[MicroExpression]:
        """Record a single spike; returns None below the detection threshold."""
        if intensity < self.detection_threshold:
            return None

        oldest = self.history.oldest()
        elapsed = now - oldest.start_time if oldest is not None else 0.0
        duration = min(elapsed, self.max_duration_ms)

        recent = [
            expr for expr in self.history
            if now - expr.start_time < self.sequence_window_ms
        ]
        if recent:
            sequence_id = recent[0].sequence_id
        else:
            self.last_sequence_id += 1
            sequence_id = self.last_sequence_id

        expression = MicroExpression(
            emotion=Emotion(emotion),
            intensity=intensity,
            significance=micro_expression_significance(emotion, intensity, duration),
            duration_ms=duration,
            start_time=now,
            sequence_id=sequence_id,
            related_emotions=tuple(expr.emotion for expr in recent),
        )
        self.history.append(expression)
        logger.debug(
            "Micro-expression %s %.3f (sequence %d)",
            expression.emotion.value, intensity, sequence_id,
        )
        return expression

    # ------------------------------------------------------------------
    # Sequence analysis
    # ------------------------------------------------------------------

    def analyze_sequence(self, now: float) -> list[str]:
        """Insights over the buffered spikes of the last analysis window."""
        recent = [
            expr for expr in self.history
            if now - expr.start_time < self.analysis_window_ms
        ]
        if len(recent) < 2:
            return []

        insights = []
        for prev, curr in zip(recent, recent[1:]):
            gap = curr.start_time - prev.start_time
            if gap < self.rapid_transition_ms:
                insights.append(
                    f"rapid transition: {prev.emotion.value} → {curr.emotion.value} "
                    f"({gap:.0f}ms)"
                )
                if (prev.emotion, curr.emotion) in self.suspicious_sequences:
                    insights.append("possible deception-suggestive emotion sequence")

        counts = Counter(expr.emotion for expr in recent)
        for emotion, count in counts.items():
            if count >= self.repeat_count:
                insights.append(
                    f"repeated {emotion.value} emotion ({count} times) - "
                    "possible suppression attempt"
                )
        return insights

    def reset(self) -> None:
        self.history.clear()
        self.last_sequence_id = 0
