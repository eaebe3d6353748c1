"""
Truth Scorer — Rule-Based Truth Probability
============================================
The central orchestrator that folds every analyzer's output into one
bounded truth probability and an emotional-stability score.

Key design principles:

1. **Every score change traces to an explicit rule.**  Each penalty that
   fires writes a line to the observation log, in evaluation order:

     1. valid transitions of at least 10%
     2. fear above threshold
     3. micro-expressions (sequences weigh more than singletons)
     4. landmark geometry (asymmetry, tension, movement, unnatural)
     5. indicator aggregation (narrative only, no penalty)
     6. baseline deviation of fear / anger

2. **Clamp once, at the end.**  Penalties are plain subtractions and may
   push the running values below zero; only the final values are clamped
   into [0, 1].

3. **Malformed input never raises.**  An invalid emotion sample yields
   the neutral default result so the UI always has something to render.

4. **No hidden state.**  Rolling history lives on the session passed in;
   the scorer itself only holds configuration.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Mapping, Optional, Union

from veritas.analyzers.facial_tension import FaceLandmarks, FacialTensionEvaluator
from veritas.analyzers.indicators import DeceptionIndicatorAggregator
from veritas.core.emotions import (
    Emotion,
    EmotionVector,
    InvalidEmotionSample,
    parse_and_normalize,
)
from veritas.core.models import AnalysisResult, DeceptionMetrics, MicroExpression
from veritas.core.presenter import ResultPresenter
from veritas.utils.helpers import format_percentage, load_config, now_ms, setup_logging

if TYPE_CHECKING:
    from veritas.temporal.session import InterrogationSession

logger = setup_logging()

_DEFAULT_TRUTH_PROBABILITY = 0.5
_DEFAULT_STABILITY = 1.0
_DEFAULT_OBSERVATION = "Emotion analysis not yet available."


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class TruthScorer:
    """Score one answer against the session's rolling evidence."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()
        self.config = config
        self.aliases = config["emotions"]["aliases"]
        self.landmark_thresholds = config["landmarks"]

        cfg = config["scoring"]
        self.initial_truth_probability = cfg["initial_truth_probability"]
        self.initial_stability = cfg["initial_stability"]
        self.dominant_threshold = cfg["dominant_threshold"]
        self.transition_rule = cfg["transition"]
        self.fear_rule = cfg["fear"]
        self.micro_sequence_rule = cfg["micro_sequence"]
        self.micro_single_rule = cfg["micro_single"]
        self.landmark_weights = cfg["landmarks"]
        self.baseline_rule = cfg["baseline"]
        self.baseline_emotions = {Emotion(e) for e in cfg["baseline"]["emotions"]}

        self.tension_evaluator = FacialTensionEvaluator(config)
        self.indicator_aggregator = DeceptionIndicatorAggregator(config)
        self.presenter = ResultPresenter(config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def score(
        self,
        session: InterrogationSession,
        emotions: Mapping,
        question: str = "",
        answer: str = "",
        landmarks: Optional[Union[FaceLandmarks, dict]] = None,
        now: Optional[float] = None,
    ) -> AnalysisResult:
        """Produce the AnalysisResult for one answered question.

        Parameters
        ----------
        session   : session whose rolling state is read and updated
        emotions  : raw 7-label sample from the face model
        question  : question text, echoed in the display view
        answer    : transcribed answer, echoed in the display view
        landmarks : optional FaceLandmarks (or its dict form)
        now       : sample timestamp in ms (defaults to wall clock)
        """
        if now is None:
            now = now_ms()

        try:
            vector = parse_and_normalize(emotions, self.aliases)
        except InvalidEmotionSample as exc:
            logger.warning("Invalid emotion sample (%s); returning neutral default.", exc)
            return self.default_result(question, answer, now)

        observations: list[str] = []
        truth = self.initial_truth_probability
        stability = self.initial_stability

        # ------ 1. Emotion transitions --------------------------------
        transitions = session.transitions.observe(vector, now)
        if transitions:
            observations.append("Emotion transitions:")
            rule = self.transition_rule
            for transition in transitions:
                observations.append(f"- {session.transitions.describe(transition)}")
                if transition.magnitude >= rule["min_magnitude"]:
                    truth -= transition.magnitude * rule["probability_weight"]
                    stability -= transition.magnitude * rule["stability_weight"]

        dominant = self.dominant_emotions(vector)
        for emotion in dominant:
            observations.append(f"{emotion.value}: {format_percentage(vector[emotion])}")

        # ------ 2. Fear ------------------------------------------------
        fear = vector[Emotion.FEARFUL]
        if fear > self.fear_rule["threshold"]:
            truth -= fear * self.fear_rule["probability_weight"]
            stability -= fear * self.fear_rule["stability_weight"]
            observations.append(
                f"Fear at {format_percentage(fear)} exceeds the "
                f"{format_percentage(self.fear_rule['threshold'])} threshold"
            )

        # ------ 3. Micro-expressions -----------------------------------
        micro = session.micro_expressions.detect(vector, now)
        if micro:
            observations.append("Micro-expressions detected:")
            for group in self._group_by_sequence(micro):
                if len(group) > 1:
                    observations.append(f"- Consecutive micro-expressions ({len(group)}):")
                    for expr in group:
                        observations.append(f"  • {self._micro_line(expr)}")
                    truth -= self.micro_sequence_rule["probability_per_item"] * len(group)
                    stability -= self.micro_sequence_rule["stability_per_item"] * len(group)
                else:
                    expr = group[0]
                    observations.append(f"- {self._micro_line(expr)}")
                    if expr.intensity >= self.micro_single_rule["min_intensity"]:
                        truth -= self.micro_single_rule["probability_penalty"]
                        stability -= self.micro_single_rule["stability_penalty"]

        # ------ 4. Landmark geometry -----------------------------------
        metrics = self._evaluate_landmarks(landmarks) if landmarks is not None else None
        if metrics is not None:
            truth -= self._apply_landmarks(metrics, observations)

        # ------ 5. Deception indicators --------------------------------
        report = self.indicator_aggregator.aggregate(
            vector,
            micro,
            session.micro_expressions.analyze_sequence(now),
            now,
            facial_tension=metrics.muscle_tension if metrics is not None else None,
        )
        if report.indicators:
            observations.append("Deception indicators:")
            observations.extend(report.indicators)

        # ------ 6. Baseline deviation ----------------------------------
        comparison = session.baseline.compare(vector)
        if comparison is not None and comparison.changes:
            observations.append("Baseline comparison:")
            rule = self.baseline_rule
            for change in comparison.changes:
                observations.append(
                    f"- {change.significance} ({change.difference * 100:.1f}%)"
                )
                if (
                    abs(change.difference) >= rule["min_difference"]
                    and change.emotion in self.baseline_emotions
                ):
                    truth -= abs(change.difference) * rule["probability_weight"]
                    stability -= abs(change.difference) * rule["stability_weight"]

        result = AnalysisResult(
            truth_probability=_clamp(truth),
            emotional_stability=_clamp(stability),
            dominant_emotions=dominant,
            micro_expressions=micro,
            deception_indicators=report.indicators,
            emotion_transitions=transitions,
            baseline_comparison=comparison,
            observations=observations,
            facial_tension=metrics.muscle_tension if metrics is not None else 0.0,
            deception_metrics=metrics,
            emotional_conflicts=report.conflicts,
            emotional_balance=self.presenter.emotional_balance(vector),
            timestamp=now,
        )
        result = replace(result, formatted=self.presenter.format(result, question, answer))
        session.record(result)

        logger.info(
            "Answer scored (session=%s): truth=%.3f stability=%.3f indicators=%d",
            session.session_id, result.truth_probability,
            result.emotional_stability, len(result.deception_indicators),
        )
        return result

    def default_result(self, question: str = "", answer: str = "", now: float = 0.0) -> AnalysisResult:
        """Neutral result used whenever the input sample is unusable."""
        result = AnalysisResult(
            truth_probability=_DEFAULT_TRUTH_PROBABILITY,
            emotional_stability=_DEFAULT_STABILITY,
            observations=[_DEFAULT_OBSERVATION],
            timestamp=now,
        )
        return replace(result, formatted=self.presenter.format(result, question, answer))

    def dominant_emotions(self, vector: EmotionVector) -> list[Emotion]:
        """Emotions at or above the dominant threshold, strongest first.

        On equal intensity an expressive emotion ranks ahead of neutral;
        otherwise canonical order is kept.
        """
        qualifying = [
            (emotion, value) for emotion, value in vector.items()
            if value >= self.dominant_threshold
        ]
        qualifying.sort(key=lambda item: (-item[1], item[0] is Emotion.NEUTRAL))
        return [emotion for emotion, _ in qualifying]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _evaluate_landmarks(
        self,
        landmarks: Union[FaceLandmarks, dict],
    ) -> Optional[DeceptionMetrics]:
        if isinstance(landmarks, dict):
            try:
                landmarks = FaceLandmarks.from_dict(landmarks)
            except ValueError as exc:
                logger.warning("Skipping landmark analysis: %s", exc)
                return None
        if not isinstance(landmarks, FaceLandmarks):
            logger.warning(
                "Skipping landmark analysis: unsupported type %s", type(landmarks).__name__
            )
            return None
        return self.tension_evaluator.evaluate(landmarks)

    def _apply_landmarks(self, metrics: DeceptionMetrics, observations: list[str]) -> float:
        """Return the total truth penalty from landmark scores, logging each firing."""
        thresholds = self.landmark_thresholds
        weights = self.landmark_weights
        penalty = 0.0

        if metrics.asymmetry > thresholds["asymmetry"]:
            observations.append(
                f"Facial asymmetry detected: {format_percentage(metrics.asymmetry)}"
            )
            penalty += metrics.asymmetry * weights["asymmetry_weight"]

        if metrics.muscle_tension > thresholds["tension"]:
            observations.append(
                f"Elevated facial muscle tension: {format_percentage(metrics.muscle_tension)}"
            )
            penalty += metrics.muscle_tension * weights["tension_weight"]

        if metrics.rapid_movements > thresholds["movement"]:
            observations.append(
                f"Rapid facial movements detected: {format_percentage(metrics.rapid_movements)}"
            )
            penalty += metrics.rapid_movements * weights["movement_weight"]

        if metrics.unnatural_expressions > thresholds["unnatural"]:
            observations.append(
                "Unnatural facial expressions detected: "
                f"{format_percentage(metrics.unnatural_expressions)}"
            )
            penalty += metrics.unnatural_expressions * weights["unnatural_weight"]

        return penalty

    @staticmethod
    def _group_by_sequence(micro: list[MicroExpression]) -> list[list[MicroExpression]]:
        groups: dict[int, list[MicroExpression]] = {}
        for expr in micro:
            groups.setdefault(expr.sequence_id, []).append(expr)
        return list(groups.values())

    @staticmethod
    def _micro_line(expr: MicroExpression) -> str:
        return f"{expr.emotion.value}: {format_percentage(expr.intensity)} ({expr.significance})"
