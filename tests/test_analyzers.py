"""
Unit Tests for the Analyzers
=============================
Tests cover:
  - TransitionTracker timing windows and ring capacity
  - MicroExpressionDetector sequence grouping and sequence analysis
  - BaselineComparator deviation filtering and wording
  - FacialTensionEvaluator landmark scores
  - DeceptionIndicatorAggregator indicator strings
"""

import sys
import unittest
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from veritas.analyzers.baseline import BaselineComparator
from veritas.analyzers.facial_tension import FaceLandmarks, FacialTensionEvaluator
from veritas.analyzers.indicators import DeceptionIndicatorAggregator
from veritas.analyzers.micro_expressions import (
    MicroExpressionDetector,
    micro_expression_significance,
)
from veritas.analyzers.transitions import TransitionTracker
from veritas.core.emotions import Emotion, EmotionVector
from veritas.core.models import MicroExpression, TransitionRecord
from veritas.utils.helpers import load_config


def _vec(**values) -> EmotionVector:
    return EmotionVector.from_mapping({e.value: values.get(e.value, 0.0) for e in Emotion})


def _landmarks(
    left_pupil=0.3, right_pupil=0.3, raising=0.2, furrowing=0.2,
    mouth_tension=0.1, opening=0.1, jaw_tension=0.1,
) -> dict:
    eye = {"upper_lid": [0.3], "lower_lid": [0.2], "corners": [{"x": 0.3, "y": 0.4}]}
    return {
        "left_eye": dict(eye, pupil_dilation=left_pupil),
        "right_eye": dict(eye, pupil_dilation=right_pupil),
        "eyebrows": {
            "left": [0.5, 0.6], "right": [0.5, 0.6],
            "raising": raising, "furrowing": furrowing,
        },
        "mouth": {
            "upper_lip": [0.5], "lower_lip": [0.5],
            "corners": [{"x": 0.4, "y": 0.7}, {"x": 0.6, "y": 0.7}],
            "tension": mouth_tension, "opening": opening,
        },
        "jawline": {"contour": [], "tension": jaw_tension},
    }


# ---------------------------------------------------------------------------
# Transition tracker
# ---------------------------------------------------------------------------

class TestTransitionTracker(unittest.TestCase):
    """Time-gated transition detection."""

    @classmethod
    def setUpClass(cls):
        cls.config = load_config()

    def setUp(self):
        self.tracker = TransitionTracker(self.config)

    def test_cold_start_returns_nothing(self):
        self.assertEqual(self.tracker.observe(_vec(neutral=1.0), 0.0), [])
        self.assertEqual(len(self.tracker.history), 0)

    def test_valid_swing_within_window(self):
        self.tracker.observe(_vec(neutral=0.6, happy=0.4), 0.0)
        result = self.tracker.observe(_vec(neutral=0.48, happy=0.52), 150.0)

        by_emotion = {t.emotion: t for t in result}
        self.assertEqual(set(by_emotion), {Emotion.NEUTRAL, Emotion.HAPPY})
        happy = by_emotion[Emotion.HAPPY]
        self.assertTrue(happy.is_valid)
        self.assertTrue(happy.significance.startswith("significant rise (150ms)"))
        self.assertEqual(happy.direction, "rise")
        self.assertAlmostEqual(happy.magnitude, 0.12)
        self.assertTrue(by_emotion[Emotion.NEUTRAL].significance.startswith("significant fall"))

    def test_too_fast_change_ignored(self):
        self.tracker.observe(_vec(neutral=0.6, happy=0.4), 0.0)
        self.assertEqual(self.tracker.observe(_vec(neutral=0.3, happy=0.7), 30.0), [])
        self.assertEqual(len(self.tracker.history), 0)

    def test_outside_window_rejected(self):
        for elapsed in (70.0, 250.0, 1000.0):
            with self.subTest(elapsed=elapsed):
                tracker = TransitionTracker(self.config)
                tracker.observe(_vec(neutral=0.6, happy=0.4), 0.0)
                self.assertEqual(tracker.observe(_vec(neutral=0.3, happy=0.7), elapsed), [])

    def test_window_is_inclusive(self):
        for elapsed in (100.0, 200.0):
            with self.subTest(elapsed=elapsed):
                tracker = TransitionTracker(self.config)
                tracker.observe(_vec(neutral=0.6, happy=0.4), 0.0)
                self.assertEqual(len(tracker.observe(_vec(neutral=0.3, happy=0.7), elapsed)), 2)

    def test_ultra_weak_change_skipped(self):
        self.tracker.observe(_vec(neutral=0.6, happy=0.4), 0.0)
        self.assertEqual(self.tracker.observe(_vec(neutral=0.595, happy=0.405), 150.0), [])

    def test_tier_wording(self):
        self.tracker.observe(_vec(happy=0.40), 0.0)
        (clear,) = self.tracker.observe(_vec(happy=0.47), 150.0)
        self.assertTrue(clear.significance.startswith("clear rise"))

        tracker = TransitionTracker(self.config)
        tracker.observe(_vec(sad=0.40), 0.0)
        (slight,) = tracker.observe(_vec(sad=0.37), 150.0)
        self.assertTrue(slight.significance.startswith("slight fall"))

    def test_consecutive_run_noted(self):
        self.tracker.observe(_vec(happy=0.40), 0.0)
        (first,) = self.tracker.observe(_vec(happy=0.52), 150.0)
        self.assertEqual(first.significance, "significant rise (150ms)")

        (second,) = self.tracker.observe(_vec(happy=0.40), 300.0)
        self.assertEqual(
            second.significance, "significant fall (150ms) - part of a consecutive run"
        )

    def test_ring_capacity_respected(self):
        low, high = _vec(neutral=0.6, happy=0.4), _vec(neutral=0.4, happy=0.6)
        now = 0.0
        for i in range(100):
            self.tracker.observe(high if i % 2 else low, now)
            now += 150.0
            self.assertLessEqual(len(self.tracker.history), 20)
        self.assertEqual(len(self.tracker.history), 20)
        self.assertTrue(all(t.is_valid for t in self.tracker.history))

    def test_rejected_change_still_updates_previous(self):
        self.tracker.observe(_vec(neutral=0.6, happy=0.4), 0.0)
        self.tracker.observe(_vec(neutral=0.3, happy=0.7), 30.0)
        self.assertEqual(self.tracker.last_update, 30.0)
        self.assertAlmostEqual(self.tracker.previous[Emotion.HAPPY], 0.7)

    def test_describe(self):
        record = TransitionRecord(
            emotion=Emotion.ANGRY, intensity_before=0.10, intensity_after=0.35,
            timestamp=150.0, elapsed_ms=150.0, magnitude=0.25, is_valid=True,
            significance="significant rise (150ms)",
        )
        self.assertEqual(
            self.tracker.describe(record), "Abrupt change in angry: 10.0% → 35.0% (rise)"
        )

    def test_reset(self):
        self.tracker.observe(_vec(happy=0.40), 0.0)
        self.tracker.observe(_vec(happy=0.52), 150.0)
        self.tracker.reset()
        self.assertIsNone(self.tracker.previous)
        self.assertEqual(len(self.tracker.history), 0)
        self.assertEqual(self.tracker.observe(_vec(happy=0.9), 300.0), [])


# ---------------------------------------------------------------------------
# Micro-expressions
# ---------------------------------------------------------------------------

class TestMicroExpressionDetector(unittest.TestCase):
    """Spike registration, sequence ids and sequence analysis."""

    @classmethod
    def setUpClass(cls):
        cls.config = load_config()

    def setUp(self):
        self.detector = MicroExpressionDetector(self.config)

    def test_spikes_within_a_second_share_sequence(self):
        first = self.detector.register(Emotion.HAPPY, 0.2, 0.0)
        second = self.detector.register(Emotion.FEARFUL, 0.2, 400.0)
        self.assertEqual(first.sequence_id, second.sequence_id)
        self.assertEqual(second.related_emotions, (Emotion.HAPPY,))

    def test_later_spike_starts_new_sequence(self):
        first = self.detector.register(Emotion.HAPPY, 0.2, 0.0)
        self.detector.register(Emotion.HAPPY, 0.2, 400.0)
        later = self.detector.register(Emotion.SAD, 0.2, 1500.0)
        self.assertNotEqual(first.sequence_id, later.sequence_id)
        self.assertEqual(later.related_emotions, ())

    def test_detect_skips_neutral_and_weak(self):
        detected = self.detector.detect(_vec(neutral=0.9, happy=0.004, sad=0.096), 0.0)
        self.assertEqual([m.emotion for m in detected], [Emotion.SAD])

    def test_duration_is_capped(self):
        first = self.detector.register(Emotion.SAD, 0.2, 0.0)
        self.assertEqual(first.duration_ms, 0.0)
        self.assertIn("momentary", first.significance)

        later = self.detector.register(Emotion.SAD, 0.2, 2000.0)
        self.assertEqual(later.duration_ms, 500.0)
        self.assertIn("persistent", later.significance)

    def test_significance_text(self):
        self.assertEqual(
            micro_expression_significance(Emotion.FEARFUL, 0.35, 50),
            "strong, momentary - possible anxiety signal",
        )
        self.assertEqual(
            micro_expression_significance(Emotion.HAPPY, 0.6, 300),
            "very strong, persistent",
        )
        self.assertEqual(
            micro_expression_significance(Emotion.SURPRISED, 0.02),
            "very weak - possible unprepared reaction",
        )
        self.assertEqual(
            micro_expression_significance(Emotion.ANGRY, 0.07, 150),
            "weak, short-lived - possible aversion signal",
        )

    def test_ring_capacity_respected(self):
        for i in range(30):
            self.detector.register(Emotion.SAD, 0.2, i * 2000.0)
        self.assertEqual(len(self.detector.history), 20)

    def test_rapid_suspicious_sequence(self):
        self.detector.register(Emotion.HAPPY, 0.3, 0.0)
        self.detector.register(Emotion.FEARFUL, 0.3, 200.0)
        insights = self.detector.analyze_sequence(300.0)
        self.assertIn("rapid transition: happy → fearful (200ms)", insights)
        self.assertIn("possible deception-suggestive emotion sequence", insights)

    def test_repeated_emotion(self):
        for t in (0.0, 600.0, 1200.0):
            self.detector.register(Emotion.SAD, 0.2, t)
        insights = self.detector.analyze_sequence(1300.0)
        self.assertEqual(
            insights, ["repeated sad emotion (3 times) - possible suppression attempt"]
        )

    def test_analysis_window(self):
        self.detector.register(Emotion.HAPPY, 0.3, 0.0)
        self.detector.register(Emotion.FEARFUL, 0.3, 100.0)
        self.assertEqual(self.detector.analyze_sequence(5000.0), [])

    def test_single_spike_has_no_insights(self):
        self.detector.register(Emotion.HAPPY, 0.3, 0.0)
        self.assertEqual(self.detector.analyze_sequence(10.0), [])

    def test_detectors_keep_independent_counters(self):
        other = MicroExpressionDetector(self.config)
        self.detector.register(Emotion.SAD, 0.2, 0.0)
        self.detector.register(Emotion.SAD, 0.2, 5000.0)
        self.assertEqual(self.detector.last_sequence_id, 2)
        self.assertEqual(other.register(Emotion.SAD, 0.2, 0.0).sequence_id, 1)


# ---------------------------------------------------------------------------
# Baseline
# ---------------------------------------------------------------------------

class TestBaselineComparator(unittest.TestCase):
    """Pre-question vs live deviation."""

    @classmethod
    def setUpClass(cls):
        cls.config = load_config()

    def setUp(self):
        self.comparator = BaselineComparator(self.config)

    def test_no_baseline(self):
        self.assertFalse(self.comparator.has_baseline)
        self.assertIsNone(self.comparator.compare(_vec(neutral=1.0)))

    def test_identical_sample_has_no_changes(self):
        sample = _vec(neutral=0.7, happy=0.3)
        self.comparator.set_baseline(sample)
        comparison = self.comparator.compare(sample)
        self.assertIsNotNone(comparison)
        self.assertEqual(comparison.changes, [])

    def test_baseline_is_normalised(self):
        self.comparator.set_baseline(_vec(neutral=1.0, happy=1.0))
        self.assertAlmostEqual(self.comparator.baseline.total, 1.0)
        self.assertAlmostEqual(self.comparator.baseline[Emotion.HAPPY], 0.5)

    def test_fear_rise(self):
        self.comparator.set_baseline(_vec(neutral=0.8, fearful=0.2))
        comparison = self.comparator.compare(_vec(neutral=0.65, fearful=0.35))
        by_emotion = {c.emotion: c for c in comparison.changes}

        self.assertEqual(set(by_emotion), {Emotion.NEUTRAL, Emotion.FEARFUL})
        self.assertEqual(
            by_emotion[Emotion.FEARFUL].significance,
            "Significant fear rise - possible reaction to the question",
        )
        self.assertEqual(
            by_emotion[Emotion.NEUTRAL].significance,
            "Significant neutrality fall - possible emotional activation",
        )
        self.assertAlmostEqual(by_emotion[Emotion.FEARFUL].difference, 0.15)

    def test_small_changes_filtered(self):
        self.comparator.set_baseline(_vec(neutral=0.5, sad=0.5))
        comparison = self.comparator.compare(_vec(neutral=0.515, sad=0.485))
        self.assertEqual(comparison.changes, [])

    def test_significance_tiers(self):
        self.assertEqual(self.comparator.significance(Emotion.SAD, 0.03), "Slight sad rise")
        self.assertEqual(
            self.comparator.significance(Emotion.ANGRY, 0.07),
            "Notable anger rise - possible defensive reaction",
        )
        self.assertEqual(
            self.comparator.significance(Emotion.SURPRISED, -0.2),
            "Significant surprise fall - possible unprepared reaction",
        )

    def test_clear_baseline(self):
        self.comparator.set_baseline(_vec(neutral=1.0))
        self.comparator.clear_baseline()
        self.assertIsNone(self.comparator.compare(_vec(neutral=1.0)))


# ---------------------------------------------------------------------------
# Facial tension
# ---------------------------------------------------------------------------

class TestFacialTensionEvaluator(unittest.TestCase):
    """Landmark geometry scores."""

    @classmethod
    def setUpClass(cls):
        cls.evaluator = FacialTensionEvaluator(load_config())

    def test_relaxed_face(self):
        metrics = self.evaluator.evaluate(FaceLandmarks.from_dict(_landmarks()))
        self.assertAlmostEqual(metrics.asymmetry, 0.0)
        self.assertAlmostEqual(metrics.muscle_tension, 0.4 / 3)
        self.assertAlmostEqual(metrics.rapid_movements, 0.3)
        self.assertAlmostEqual(metrics.unnatural_expressions, 0.0)

    def test_tense_face(self):
        raw = _landmarks(
            left_pupil=0.9, right_pupil=0.3, raising=0.8, furrowing=0.8,
            mouth_tension=0.8, jaw_tension=0.9,
        )
        metrics = self.evaluator.evaluate(FaceLandmarks.from_dict(raw))
        self.assertAlmostEqual(metrics.asymmetry, 0.2 / 3)
        self.assertAlmostEqual(metrics.muscle_tension, 2.5 / 3)
        self.assertAlmostEqual(metrics.rapid_movements, 0.9)
        self.assertAlmostEqual(metrics.unnatural_expressions, 0.7)

    def test_scores_stay_in_unit_range(self):
        raw = _landmarks(left_pupil=1.0, right_pupil=0.0, raising=1.0, furrowing=0.0)
        raw["left_eye"]["upper_lid"] = [5.0]
        raw["mouth"]["upper_lip"] = [9.0]
        metrics = self.evaluator.evaluate(FaceLandmarks.from_dict(raw))
        for value in (metrics.asymmetry, metrics.unnatural_expressions):
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, 1.0)

    def test_nested_movement_accepted(self):
        raw = _landmarks()
        brows = raw["eyebrows"]
        brows["movement"] = {"raising": brows.pop("raising"), "furrowing": brows.pop("furrowing")}
        landmarks = FaceLandmarks.from_dict(raw)
        self.assertAlmostEqual(landmarks.eyebrows.raising, 0.2)

    def test_point_tuples_accepted(self):
        raw = _landmarks()
        raw["mouth"]["corners"] = [(0.4, 0.7), (0.6, 0.75)]
        landmarks = FaceLandmarks.from_dict(raw)
        self.assertAlmostEqual(landmarks.mouth.corners[1].y, 0.75)

    def test_empty_landmark_lists(self):
        raw = _landmarks()
        raw["left_eye"]["upper_lid"] = []
        raw["mouth"]["corners"] = []
        metrics = self.evaluator.evaluate(FaceLandmarks.from_dict(raw))
        self.assertGreaterEqual(metrics.asymmetry, 0.0)

    def test_malformed_landmarks_raise(self):
        raw = _landmarks()
        del raw["mouth"]
        with self.assertRaises(ValueError):
            FaceLandmarks.from_dict(raw)

        raw = _landmarks()
        raw["jawline"]["tension"] = "tight"
        with self.assertRaises(ValueError):
            FaceLandmarks.from_dict(raw)


# ---------------------------------------------------------------------------
# Indicators
# ---------------------------------------------------------------------------

class TestDeceptionIndicatorAggregator(unittest.TestCase):
    """Indicator wording and sources."""

    @classmethod
    def setUpClass(cls):
        cls.aggregator = DeceptionIndicatorAggregator(load_config())

    def _micro(self, emotion, intensity, start):
        return MicroExpression(
            emotion=emotion, intensity=intensity, significance="weak",
            duration_ms=0.0, start_time=start, sequence_id=1,
        )

    def test_fear_equal_to_neutral(self):
        report = self.aggregator.aggregate(_vec(neutral=0.2, happy=0.6, fearful=0.2), [], [], 0.0)
        self.assertIn("fear detected (20.0%) - possible deception signal", report.indicators)
        self.assertNotIn("fear exceeds neutral - strong deception indicator", report.indicators)
        self.assertEqual(
            report.conflicts, ["conflicting emotions: happy (60.0%) and fearful (20.0%)"]
        )
        self.assertTrue(report.indicators)

    def test_fear_exceeds_neutral(self):
        report = self.aggregator.aggregate(_vec(neutral=0.3, fearful=0.5, sad=0.2), [], [], 0.0)
        self.assertEqual(report.indicators, [
            "fear detected (50.0%) - possible deception signal",
            "fear exceeds neutral - strong deception indicator",
        ])

    def test_each_conflict_reported_once(self):
        report = self.aggregator.aggregate(
            _vec(neutral=0.2, happy=0.6, angry=0.1, fearful=0.1), [], [], 0.0
        )
        self.assertEqual(len(report.conflicts), 2)
        self.assertEqual(len(set(report.indicators)), len(report.indicators))

    def test_calm_sample_has_no_indicators(self):
        report = self.aggregator.aggregate(_vec(neutral=0.9, happy=0.1), [], [], 0.0)
        self.assertEqual(report.indicators, [])

    def test_fresh_micro_expression(self):
        fresh = self._micro(Emotion.SAD, 0.05, 500.0)
        stale = self._micro(Emotion.ANGRY, 0.05, -500.0)
        report = self.aggregator.aggregate(_vec(neutral=1.0), [fresh, stale], [], 1000.0)
        self.assertEqual(report.indicators, ["fresh micro-expression: sad (5.0%) - weak"])

    def test_sequence_insights_need_micro_expressions(self):
        insights = ["rapid transition: happy → fearful (200ms)"]
        report = self.aggregator.aggregate(_vec(neutral=1.0), [], insights, 0.0)
        self.assertEqual(report.indicators, [])

        micro = [self._micro(Emotion.FEARFUL, 0.01, 0.0)]
        report = self.aggregator.aggregate(_vec(neutral=1.0), micro, insights, 0.0)
        self.assertEqual(report.indicators, insights)

    def test_facial_tension(self):
        report = self.aggregator.aggregate(_vec(neutral=1.0), [], [], 0.0, facial_tension=0.5)
        self.assertEqual(report.indicators, ["elevated facial muscle tension (50.0%)"])
        for tension in (None, 0.2):
            report = self.aggregator.aggregate(_vec(neutral=1.0), [], [], 0.0, facial_tension=tension)
            self.assertEqual(report.indicators, [])


if __name__ == "__main__":
    unittest.main()
