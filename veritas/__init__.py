"""
Veritas — Rule-Based Truth Likelihood Engine
=============================================
Scores answered questions from per-frame facial emotion samples,
optional landmark geometry and answer text, producing a bounded truth
probability with an explainable trail of the rules that fired.
"""

__version__ = "1.0.0"

from veritas.core.emotions import Emotion, EmotionVector, InvalidEmotionSample
from veritas.core.models import AnalysisResult
from veritas.temporal.session import InterrogationSession
from veritas.engine import observe_frame, set_baseline, clear_baseline, score_answer

__all__ = [
    "Emotion",
    "EmotionVector",
    "InvalidEmotionSample",
    "AnalysisResult",
    "InterrogationSession",
    "observe_frame",
    "set_baseline",
    "clear_baseline",
    "score_answer",
]
