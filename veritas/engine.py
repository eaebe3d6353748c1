"""
Engine API — Frame, Baseline and Answer Entry Points
=====================================================
Thin functions a presentation layer calls, each taking the session whose
state it reads and updates:

  - observe_frame(session, emotions, now)   per frame (~10 Hz)
  - set_baseline(session, emotions)         right before a question
  - score_answer(session, emotions, ...)    once per transcribed answer
  - clear_baseline(session)                 after the answer is scored

Example::

    session = InterrogationSession()
    set_baseline(session, calm_sample)
    for sample, ts in frames:
        observe_frame(session, sample, now=ts)
    result = score_answer(session, last_sample, "Where do you work?", transcript)
    clear_baseline(session)
"""

from __future__ import annotations

from typing import Mapping, Optional, Union

from veritas.analyzers.facial_tension import FaceLandmarks
from veritas.core.emotions import (
    EmotionVector,
    InvalidEmotionSample,
    parse_and_normalize,
)
from veritas.core.models import AnalysisResult, TransitionRecord
from veritas.core.scorer import TruthScorer
from veritas.temporal.session import InterrogationSession
from veritas.utils.helpers import now_ms, setup_logging

logger = setup_logging()


def observe_frame(
    session: InterrogationSession,
    emotions: Mapping,
    now: Optional[float] = None,
) -> list[TransitionRecord]:
    """Feed one detector frame to the session; return its valid transitions.

    Frames are normalised exactly as answers are, so the tracker always
    compares like with like.  Unusable frames are logged and produce no
    transitions.
    """
    if now is None:
        now = now_ms()

    try:
        vector = parse_and_normalize(emotions, session.config["emotions"]["aliases"])
    except InvalidEmotionSample as exc:
        logger.warning("Dropping invalid frame (session=%s): %s", session.session_id, exc)
        return []

    transitions = session.transitions.observe(vector, now)
    session.micro_expressions.detect(vector, now)
    if transitions:
        logger.debug(
            "Frame at %.0fms: %d valid transition(s)", now, len(transitions)
        )
    return transitions


def set_baseline(session: InterrogationSession, emotions: Mapping) -> None:
    """Capture the pre-question baseline.

    Raises
    ------
    InvalidEmotionSample
        If the sample is malformed; a bad baseline is a caller error.
    """
    vector = EmotionVector.from_mapping(emotions, session.config["emotions"]["aliases"])
    session.baseline.set_baseline(vector)


def clear_baseline(session: InterrogationSession) -> None:
    session.baseline.clear_baseline()


def score_answer(
    session: InterrogationSession,
    emotions: Mapping,
    question: str = "",
    answer: str = "",
    landmarks: Optional[Union[FaceLandmarks, dict]] = None,
    now: Optional[float] = None,
) -> AnalysisResult:
    """Score one answer; never raises on malformed emotion input."""
    return TruthScorer(session.config).score(
        session, emotions, question=question, answer=answer,
        landmarks=landmarks, now=now,
    )
