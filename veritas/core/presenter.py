"""
Result Presenter — Display View of an AnalysisResult
=====================================================
Maps the numeric result into display bands and plain lists of strings a
UI can render without knowing anything about the scoring rules.

The presenter does NOT score; it reads what the scorer already produced.
It holds only configuration, never session state, so one instance can be
shared by any number of sessions.
"""

from __future__ import annotations

from typing import Optional

from veritas.core.emotions import Emotion, EmotionVector
from veritas.core.models import (
    AnalysisResult,
    BaselineComparison,
    BaselineSummary,
    DeceptionMarkers,
    EmotionalStateView,
    FormattedResult,
    TruthScore,
)
from veritas.utils.helpers import format_percentage, load_config


class ResultPresenter:
    """Pure mapping AnalysisResult -> FormattedResult."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()
        cfg = config["presentation"]
        self.truth_bands = cfg["truth_bands"]
        self.significant_baseline_change = cfg["significant_baseline_change"]
        balance = cfg["balance"]
        self.positive = [Emotion(e) for e in balance["positive"]]
        self.negative = [Emotion(e) for e in balance["negative"]]
        self.positive_ratio = balance["positive_ratio"]
        self.negative_ratio = balance["negative_ratio"]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def format(
        self,
        result: AnalysisResult,
        question: str = "",
        answer: str = "",
    ) -> FormattedResult:
        """Assemble the display view for one scored answer."""
        dominant = [e.value for e in result.dominant_emotions]
        stability_pct = result.emotional_stability * 100

        return FormattedResult(
            question=question,
            answer=answer,
            truth_score=TruthScore(
                percentage=round(result.truth_probability * 100),
                evaluation=self.truth_band(result.truth_probability),
                confidence=stability_pct,
            ),
            emotional_state=EmotionalStateView(
                primary=dominant[0] if dominant else Emotion.NEUTRAL.value,
                secondary=dominant[1:],
                stability=stability_pct,
                baseline=self._baseline_summary(result.baseline_comparison),
            ),
            deception_markers=DeceptionMarkers(
                found=len(result.deception_indicators) > 0,
                indicators=list(result.deception_indicators),
                micro_expressions=[
                    f"{me.emotion.value}: {format_percentage(me.intensity)} "
                    f"({me.significance})"
                    for me in result.micro_expressions
                ],
                emotional_conflicts=list(result.emotional_conflicts),
            ),
        )

    def truth_band(self, probability: float) -> str:
        """Text band for a truth probability, 'very likely true' ... 'very likely false'."""
        for band in self.truth_bands:
            if probability >= band["min"]:
                return band["label"]
        return self.truth_bands[-1]["label"]

    def emotional_balance(self, emotions: EmotionVector) -> str:
        """Positive vs negative emotion ratio as a phrase."""
        positive = sum(emotions[e] for e in self.positive)
        negative = sum(emotions[e] for e in self.negative)
        if positive == 0 and negative == 0:
            return "balanced emotions"
        ratio = positive / (negative or 0.0001)
        if ratio > self.positive_ratio:
            return "predominantly positive emotions"
        if ratio < self.negative_ratio:
            return "predominantly negative emotions"
        return "balanced emotions"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _baseline_summary(self, comparison: Optional[BaselineComparison]) -> BaselineSummary:
        if comparison is None:
            return BaselineSummary(before="none", after="none")
        return BaselineSummary(
            before="recorded",
            after="analyzed",
            significant_changes=[
                f"{change.significance} ({change.difference * 100:.1f}%)"
                for change in comparison.changes
                if abs(change.difference) >= self.significant_baseline_change
            ],
        )
