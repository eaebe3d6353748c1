"""
Analyzers — Per-Signal Evidence Extraction
===========================================
Each analyzer handles one kind of evidence:
  - TransitionTracker:             time-gated emotion changes between samples
  - MicroExpressionDetector:       short-lived spikes grouped into sequences
  - BaselineComparator:            deviation from the pre-question snapshot
  - FacialTensionEvaluator:        landmark asymmetry / tension / movement
  - DeceptionIndicatorAggregator:  human-readable indicator strings
"""

from veritas.analyzers.transitions import TransitionTracker
from veritas.analyzers.micro_expressions import MicroExpressionDetector
from veritas.analyzers.baseline import BaselineComparator
from veritas.analyzers.facial_tension import FaceLandmarks, FacialTensionEvaluator
from veritas.analyzers.indicators import DeceptionIndicatorAggregator

__all__ = [
    "TransitionTracker",
    "MicroExpressionDetector",
    "BaselineComparator",
    "FaceLandmarks",
    "FacialTensionEvaluator",
    "DeceptionIndicatorAggregator",
]
