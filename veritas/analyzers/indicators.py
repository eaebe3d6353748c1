"""
Deception Indicator Aggregator
===============================
Turns raw signals into human-readable indicator strings.  It does NOT
score anything: the scorer owns every penalty, this module only narrates
which rules fired and why.

Sources, in order:
  1. Fear level above threshold (and fear outweighing neutral)
  2. Conflicting emotions (happy alongside fearful / angry)
  3. Micro-expression sequence insights
  4. Fresh micro-expressions (started within the last second)
  5. Facial muscle tension, when landmarks were supplied
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from veritas.core.emotions import Emotion, EmotionVector
from veritas.core.models import MicroExpression
from veritas.utils.helpers import format_percentage, load_config


@dataclass(frozen=True)
class IndicatorReport:
    indicators: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)


class DeceptionIndicatorAggregator:
    """Collect explanatory strings from the analyzers' outputs."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()
        cfg = config["indicators"]
        self.fear_threshold = cfg["fear_threshold"]
        self.conflict_threshold = cfg["conflict_threshold"]
        self.micro_threshold = cfg["micro_threshold"]
        self.fresh_window_ms = cfg["fresh_window_ms"]
        self.tension_threshold = cfg["tension_threshold"]
        self.conflict_pairs = [(Emotion(a), Emotion(b)) for a, b in cfg["conflict_pairs"]]

    def aggregate(
        self,
        emotions: EmotionVector,
        micro_expressions: list[MicroExpression],
        sequence_insights: list[str],
        now: float,
        facial_tension: Optional[float] = None,
    ) -> IndicatorReport:
        """Build the indicator list for one scored sample.

        Parameters
        ----------
        emotions          : normalised sample being scored
        micro_expressions : spikes detected for this sample
        sequence_insights : output of MicroExpressionDetector.analyze_sequence()
        now               : timestamp (ms) of the sample
        facial_tension    : muscle tension score, or None without landmarks
        """
        indicators: list[str] = []

        fear = emotions[Emotion.FEARFUL]
        if fear > self.fear_threshold:
            indicators.append(
                f"fear detected ({format_percentage(fear)}) - possible deception signal"
            )
            if fear > emotions[Emotion.NEUTRAL]:
                indicators.append("fear exceeds neutral - strong deception indicator")

        conflicts = self.conflicts(emotions)
        indicators.extend(conflicts)

        if micro_expressions:
            indicators.extend(sequence_insights)
            for expr in micro_expressions:
                if (
                    expr.intensity >= self.micro_threshold
                    and now - expr.start_time < self.fresh_window_ms
                ):
                    indicators.append(
                        f"fresh micro-expression: {expr.emotion.value} "
                        f"({format_percentage(expr.intensity)}) - {expr.significance}"
                    )

        if facial_tension is not None and facial_tension > self.tension_threshold:
            indicators.append(
                f"elevated facial muscle tension ({format_percentage(facial_tension)})"
            )

        return IndicatorReport(indicators=indicators, conflicts=conflicts)

    def conflicts(self, emotions: EmotionVector) -> list[str]:
        """Each configured contradictory pair present above the weak threshold, once."""
        found = []
        for first, second in self.conflict_pairs:
            a, b = emotions[first], emotions[second]
            if a > self.conflict_threshold and b > self.conflict_threshold:
                found.append(
                    f"conflicting emotions: {first.value} ({format_percentage(a)}) "
                    f"and {second.value} ({format_percentage(b)})"
                )
        return found
