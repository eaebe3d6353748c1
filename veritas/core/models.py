"""
Analysis Data Model
====================
Holds the **complete** result of scoring one answer, plus the evidence
records the analyzers produce along the way:

  - TransitionRecord   (Transition Tracker)
  - MicroExpression    (Micro-Expression Detector)
  - BaselineComparison (Baseline Comparator)
  - DeceptionMetrics   (Facial-Tension Evaluator)
  - FormattedResult    (Result Presenter)
  - AnalysisResult     (Scorer, the aggregate)

All records are frozen: a result is built once per scoring call and never
mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Optional
import json

from veritas.core.emotions import Emotion


# ---------------------------------------------------------------------------
# Evidence records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TransitionRecord:
    """Change in one emotion's intensity between two consecutive samples."""

    emotion: Emotion
    intensity_before: float
    intensity_after: float
    timestamp: float                    # ms
    elapsed_ms: float                   # since the previous sample
    magnitude: float                    # |after - before|
    is_valid: bool
    significance: str

    @property
    def direction(self) -> str:
        return "rise" if self.intensity_after > self.intensity_before else "fall"


@dataclass(frozen=True)
class MicroExpression:
    """Brief, low-intensity emotion spike."""

    emotion: Emotion
    intensity: float
    significance: str
    duration_ms: float                  # capped at the configured maximum
    start_time: float                   # ms
    sequence_id: int
    related_emotions: tuple[Emotion, ...] = ()


@dataclass(frozen=True)
class BaselineChange:
    emotion: Emotion
    before: float
    after: float
    difference: float                   # after - before
    significance: str


@dataclass(frozen=True)
class BaselineComparison:
    """Live sample vs the pre-question snapshot."""

    baseline: dict[str, float]
    live: dict[str, float]
    changes: list[BaselineChange] = field(default_factory=list)


@dataclass(frozen=True)
class DeceptionMetrics:
    """Landmark-derived scores, each in [0, 1]."""

    asymmetry: float = 0.0
    muscle_tension: float = 0.0
    rapid_movements: float = 0.0
    unnatural_expressions: float = 0.0


# ---------------------------------------------------------------------------
# Display view
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TruthScore:
    percentage: int
    evaluation: str
    confidence: float


@dataclass(frozen=True)
class BaselineSummary:
    before: str
    after: str
    significant_changes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EmotionalStateView:
    primary: str
    secondary: list[str]
    stability: float
    baseline: BaselineSummary


@dataclass(frozen=True)
class DeceptionMarkers:
    found: bool
    indicators: list[str] = field(default_factory=list)
    micro_expressions: list[str] = field(default_factory=list)
    emotional_conflicts: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FormattedResult:
    """Display-oriented view assembled by the ResultPresenter."""

    question: str
    answer: str
    truth_score: TruthScore
    emotional_state: EmotionalStateView
    deception_markers: DeceptionMarkers


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnalysisResult:
    """Structured outcome of scoring one answer."""

    # --- Scores (clamped to [0, 1]) ---
    truth_probability: float
    emotional_stability: float

    # --- Evidence ---
    dominant_emotions: list[Emotion] = field(default_factory=list)
    micro_expressions: list[MicroExpression] = field(default_factory=list)
    deception_indicators: list[str] = field(default_factory=list)
    emotion_transitions: list[TransitionRecord] = field(default_factory=list)
    baseline_comparison: Optional[BaselineComparison] = None
    observations: list[str] = field(default_factory=list)   # rule firings, in order

    # --- Supporting detail ---
    facial_tension: float = 0.0
    deception_metrics: Optional[DeceptionMetrics] = None
    emotional_conflicts: list[str] = field(default_factory=list)
    emotional_balance: str = ""
    timestamp: float = 0.0

    # --- Display view (filled in by the presenter) ---
    formatted: Optional[FormattedResult] = None

    @property
    def primary_emotion(self) -> Optional[Emotion]:
        return self.dominant_emotions[0] if self.dominant_emotions else None

    def to_dict(self) -> dict:
        """Serialise to a plain dict (for JSON export, API responses)."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
