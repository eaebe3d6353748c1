"""
Temporal Module — Session-Scoped State
=======================================
One InterrogationSession per interviewee: rolling transition and
micro-expression history, the active baseline, and scored answers.
"""

from veritas.temporal.session import InterrogationSession

__all__ = ["InterrogationSession"]
