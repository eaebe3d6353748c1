"""
Emotion Vocabulary & Normalizer
================================
The face-analysis model reports seven expression intensities per frame:

    neutral . happy . sad . angry . fearful . disgusted . surprised

``Emotion`` is that closed vocabulary.  ``EmotionVector`` is an immutable
sample over it, backed by a numpy array in canonical order so the
per-label arithmetic in the trackers stays vectorised.

Validation is strict (every label present, numeric, finite, non-negative)
because a single NaN would silently poison every downstream rule.
Normalisation never divides by zero: an all-zero sample passes through
unchanged.
"""

from __future__ import annotations

import math
import numbers
from enum import Enum
from typing import Iterator, Mapping, Optional

import numpy as np


class Emotion(str, Enum):
    """Closed set of expression labels, in canonical order."""

    NEUTRAL = "neutral"
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    FEARFUL = "fearful"
    DISGUSTED = "disgusted"
    SURPRISED = "surprised"

    def __str__(self) -> str:
        return self.value


EMOTIONS: tuple[Emotion, ...] = tuple(Emotion)
_INDEX = {emotion: i for i, emotion in enumerate(EMOTIONS)}


class InvalidEmotionSample(ValueError):
    """Raised when a raw sample cannot be turned into an EmotionVector."""


class EmotionVector:
    """Immutable mapping Emotion -> intensity."""

    __slots__ = ("_values",)

    def __init__(self, values):
        arr = np.array(values, dtype=float)
        if arr.shape != (len(EMOTIONS),):
            raise InvalidEmotionSample(
                f"Expected {len(EMOTIONS)} intensities, got shape {arr.shape}"
            )
        arr.setflags(write=False)
        self._values = arr

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(
        cls,
        raw: Mapping,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> "EmotionVector":
        """Validate a raw ``{label: intensity}`` sample.

        Detector aliases (e.g. ``fear`` for ``fearful``) are consulted only
        when the canonical label is absent.  Unknown extra keys are ignored.
        """
        if not isinstance(raw, Mapping):
            raise InvalidEmotionSample(
                f"Emotion sample must be a mapping, got {type(raw).__name__}"
            )

        fallback = {canonical: alias for alias, canonical in (aliases or {}).items()}
        values = []
        for emotion in EMOTIONS:
            if emotion.value in raw:
                value = raw[emotion.value]
            elif fallback.get(emotion.value) in raw:
                value = raw[fallback[emotion.value]]
            else:
                raise InvalidEmotionSample(f"Missing emotion label: {emotion.value}")

            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidEmotionSample(
                    f"Intensity for {emotion.value} is not numeric: {value!r}"
                )
            value = float(value)
            if math.isnan(value) or math.isinf(value):
                raise InvalidEmotionSample(f"Intensity for {emotion.value} is not finite")
            if value < 0:
                raise InvalidEmotionSample(f"Intensity for {emotion.value} is negative")
            values.append(value)

        return cls(values)

    # ------------------------------------------------------------------
    # Mapping protocol
    # ------------------------------------------------------------------

    def __getitem__(self, emotion) -> float:
        return float(self._values[_INDEX[emotion]])

    def __iter__(self) -> Iterator[Emotion]:
        return iter(EMOTIONS)

    def __len__(self) -> int:
        return len(EMOTIONS)

    def items(self) -> Iterator[tuple[Emotion, float]]:
        for emotion, value in zip(EMOTIONS, self._values):
            yield emotion, float(value)

    def __eq__(self, other) -> bool:
        if not isinstance(other, EmotionVector):
            return NotImplemented
        return bool(np.array_equal(self._values, other._values))

    def __hash__(self) -> int:
        return hash(self._values.tobytes())

    def __repr__(self) -> str:
        body = ", ".join(f"{e.value}={v:.3f}" for e, v in self.items())
        return f"EmotionVector({body})"

    # ------------------------------------------------------------------
    # Numeric helpers
    # ------------------------------------------------------------------

    @property
    def total(self) -> float:
        return float(self._values.sum())

    def as_array(self) -> np.ndarray:
        """Writable copy in canonical order."""
        return self._values.copy()

    def to_dict(self) -> dict[str, float]:
        return {e.value: v for e, v in self.items()}


def normalize_emotions(vector: EmotionVector) -> EmotionVector:
    """Rescale so intensities sum to 1; an all-zero vector is returned as-is."""
    total = vector.total
    if total == 0:
        return vector
    return EmotionVector(vector.as_array() / total)


def parse_and_normalize(
    raw: Mapping,
    aliases: Optional[Mapping[str, str]] = None,
) -> EmotionVector:
    """Validate then normalise a raw detector sample."""
    return normalize_emotions(EmotionVector.from_mapping(raw, aliases))
