"""
Core Module — Emotion Model, Scoring & Presentation
====================================================
  - Emotion / EmotionVector:  closed emotion vocabulary + normaliser
  - AnalysisResult:           data model holding scoring results
  - TruthScorer:              rule-based truth probability (orchestrator)
  - ResultPresenter:          display bands for a scored answer
"""

from veritas.core.emotions import Emotion, EmotionVector, InvalidEmotionSample, normalize_emotions
from veritas.core.models import AnalysisResult
from veritas.core.presenter import ResultPresenter
from veritas.core.scorer import TruthScorer

__all__ = [
    "Emotion",
    "EmotionVector",
    "InvalidEmotionSample",
    "normalize_emotions",
    "AnalysisResult",
    "ResultPresenter",
    "TruthScorer",
]
