"""
Baseline Comparator — Pre-Question vs During-Answer Deviation
==============================================================
A baseline is a normalised snapshot taken right before a question is
asked and cleared once the answer is scored.  Having no baseline is a
normal state: ``compare()`` simply returns ``None``.
"""

from __future__ import annotations

from typing import Optional

from veritas.core.emotions import Emotion, EmotionVector, normalize_emotions
from veritas.core.models import BaselineChange, BaselineComparison
from veritas.utils.helpers import load_config, setup_logging

logger = setup_logging()

# (noun used in the sentence, interpretation)
_GLOSSES = {
    Emotion.NEUTRAL: ("neutrality", "possible emotional activation"),
    Emotion.HAPPY: ("happy", ""),
    Emotion.SAD: ("sad", ""),
    Emotion.ANGRY: ("anger", "possible defensive reaction"),
    Emotion.FEARFUL: ("fear", "possible reaction to the question"),
    Emotion.DISGUSTED: ("disgusted", ""),
    Emotion.SURPRISED: ("surprise", "possible unprepared reaction"),
}


class BaselineComparator:
    """Holds at most one baseline and measures deviation from it."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()
        cfg = config["baseline"]
        self.minimal_change = cfg["minimal_change"]
        self.notable_change = cfg["notable_change"]
        self.significant_change = cfg["significant_change"]
        self.baseline: Optional[EmotionVector] = None

    @property
    def has_baseline(self) -> bool:
        return self.baseline is not None

    def set_baseline(self, vector: EmotionVector) -> None:
        self.baseline = normalize_emotions(vector)
        logger.info("Baseline captured: %s", self.baseline)

    def clear_baseline(self) -> None:
        if self.baseline is not None:
            logger.info("Baseline cleared.")
        self.baseline = None

    def compare(self, live: EmotionVector) -> Optional[BaselineComparison]:
        """Per-emotion deviations of ``live`` from the baseline, or None without one."""
        if self.baseline is None:
            return None

        changes = []
        for emotion, after in live.items():
            before = self.baseline[emotion]
            difference = after - before
            if abs(difference) < self.minimal_change:
                continue
            changes.append(BaselineChange(
                emotion=emotion,
                before=before,
                after=after,
                difference=difference,
                significance=self.significance(emotion, difference),
            ))

        return BaselineComparison(
            baseline=self.baseline.to_dict(),
            live=live.to_dict(),
            changes=changes,
        )

    def significance(self, emotion: Emotion, difference: float) -> str:
        """E.g. 'Significant fear rise - possible reaction to the question'."""
        magnitude = abs(difference)
        if magnitude >= self.significant_change:
            tier = "Significant"
        elif magnitude >= self.notable_change:
            tier = "Notable"
        else:
            tier = "Slight"

        direction = "rise" if difference > 0 else "fall"
        noun, gloss = _GLOSSES[Emotion(emotion)]
        text = f"{tier} {noun} {direction}"
        if gloss:
            text += f" - {gloss}"
        return text
