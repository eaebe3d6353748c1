"""
Interrogation Session — Explicit Per-Session State
===================================================
Everything the engine remembers between calls lives here:

  - the Transition Tracker (previous sample + ring of valid transitions)
  - the Micro-Expression Detector (ring of spikes + sequence-id counter)
  - the Baseline Comparator (at most one active baseline)
  - the newest ``history.capacity`` AnalysisResults of this session

Nothing is module-global, so independent sessions can run side by side
and tests start from a clean slate.  A session assumes a single writer:
the calling pipeline serialises frame and answer events.
"""

from __future__ import annotations

import uuid
from collections import Counter
from typing import Optional

from veritas.analyzers.baseline import BaselineComparator
from veritas.analyzers.micro_expressions import MicroExpressionDetector
from veritas.analyzers.transitions import TransitionTracker
from veritas.core.models import AnalysisResult
from veritas.utils.helpers import load_config, setup_logging
from veritas.utils.ring_buffer import RingBuffer

logger = setup_logging()


class InterrogationSession:
    """State owned by one question/answer session."""

    def __init__(self, config: Optional[dict] = None, session_id: Optional[str] = None):
        if config is None:
            config = load_config()
        self.config = config
        self.session_id = session_id or str(uuid.uuid4())

        self.transitions = TransitionTracker(config)
        self.micro_expressions = MicroExpressionDetector(config)
        self.baseline = BaselineComparator(config)
        history_cfg = config["history"]
        self.results: RingBuffer[AnalysisResult] = RingBuffer(history_cfg["capacity"])
        self.decline_margin = history_cfg["decline_margin"]
        self.min_answers_for_trend = history_cfg["min_answers_for_trend"]

        logger.info("Session started: %s", self.session_id)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def record(self, result: AnalysisResult) -> None:
        self.results.append(result)

    def statistics(self) -> dict:
        """Aggregate statistics over this session's scored answers.

        Returns
        -------
        dict with:
            total_answers, avg_truth_probability, avg_stability,
            most_common_emotion, decline_detected
        """
        if not self.results:
            return {
                "total_answers": 0,
                "avg_truth_probability": 0.0,
                "avg_stability": 0.0,
                "most_common_emotion": "N/A",
                "decline_detected": False,
            }

        results = self.results.to_list()
        n = len(results)
        truth_sum = sum(r.truth_probability for r in results)
        stability_sum = sum(r.emotional_stability for r in results)

        primaries = [
            r.primary_emotion.value for r in results if r.primary_emotion is not None
        ]
        most_common = Counter(primaries).most_common(1)[0][0] if primaries else "N/A"

        # Decline: are recent answers scoring less truthful than early ones?
        decline = False
        if n >= self.min_answers_for_trend:
            older = results[:n // 3]            # oldest third
            recent = results[2 * n // 3:]       # newest third
            older_truth = sum(r.truth_probability for r in older) / len(older)
            recent_truth = sum(r.truth_probability for r in recent) / len(recent)
            if recent_truth < older_truth - self.decline_margin:
                decline = True

        return {
            "total_answers": n,
            "avg_truth_probability": round(truth_sum / n, 3),
            "avg_stability": round(stability_sum / n, 3),
            "most_common_emotion": most_common,
            "decline_detected": decline,
        }

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Forget all rolling state, the baseline and the answer history."""
        self.transitions.reset()
        self.micro_expressions.reset()
        self.baseline.clear_baseline()
        self.results.clear()
        logger.info("Session reset: %s", self.session_id)
