"""
Facial-Tension Evaluator — Landmark Geometry Scores
====================================================
Optional analyzer: runs only when the face model also supplies landmark
geometry.  Produces four scores in [0, 1]:

  - asymmetry              left/right differences of eyes, brows, mouth
  - muscle_tension         mean of brow furrow, mouth and jaw tension
  - rapid_movements        strongest of brow raise, mouth opening, pupils
  - unnatural_expressions  implausible combinations (raised brow + tense
                           mouth, mismatched pupil dilation)

Landmark values are expected to be pre-normalised to [0, 1] by the
detector; this module does no image-space geometry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from veritas.core.models import DeceptionMetrics
from veritas.utils.helpers import load_config, setup_logging

logger = setup_logging()


# ---------------------------------------------------------------------------
# Landmark structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float

    @classmethod
    def from_any(cls, value) -> "Point":
        if isinstance(value, Point):
            return value
        if isinstance(value, dict):
            return cls(float(value["x"]), float(value["y"]))
        x, y = value
        return cls(float(x), float(y))


@dataclass(frozen=True)
class EyeLandmarks:
    upper_lid: list[float]
    lower_lid: list[float]
    corners: list[Point]
    pupil_dilation: float


@dataclass(frozen=True)
class EyebrowLandmarks:
    left: list[float]
    right: list[float]
    raising: float
    furrowing: float


@dataclass(frozen=True)
class MouthLandmarks:
    upper_lip: list[float]
    lower_lip: list[float]
    corners: list[Point]
    tension: float
    opening: float


@dataclass(frozen=True)
class NoseLandmarks:
    bridge: list[float] = field(default_factory=list)
    tip: Optional[Point] = None
    wings: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class JawlineLandmarks:
    contour: list[float]
    tension: float


@dataclass(frozen=True)
class FaceShape:
    symmetry: float = 0.0
    proportions: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class FaceLandmarks:
    """Per-frame landmark geometry from the face model."""

    left_eye: EyeLandmarks
    right_eye: EyeLandmarks
    eyebrows: EyebrowLandmarks
    mouth: MouthLandmarks
    jawline: JawlineLandmarks
    nose: NoseLandmarks = field(default_factory=NoseLandmarks)
    face_shape: FaceShape = field(default_factory=FaceShape)

    @classmethod
    def from_dict(cls, data: dict) -> "FaceLandmarks":
        """Build from the nested dict form.

        Eyebrow ``raising`` / ``furrowing`` may sit either directly on the
        eyebrow dict or under a ``movement`` sub-dict.

        Raises
        ------
        ValueError
            If a required section or value is missing or malformed.
        """
        try:
            brows = data["eyebrows"]
            movement = brows.get("movement", brows)
            nose = data.get("nose") or {}
            shape = data.get("face_shape") or {}
            return cls(
                left_eye=_eye(data["left_eye"]),
                right_eye=_eye(data["right_eye"]),
                eyebrows=EyebrowLandmarks(
                    left=_floats(brows["left"]),
                    right=_floats(brows["right"]),
                    raising=float(movement["raising"]),
                    furrowing=float(movement["furrowing"]),
                ),
                mouth=MouthLandmarks(
                    upper_lip=_floats(data["mouth"]["upper_lip"]),
                    lower_lip=_floats(data["mouth"]["lower_lip"]),
                    corners=[Point.from_any(p) for p in data["mouth"]["corners"]],
                    tension=float(data["mouth"]["tension"]),
                    opening=float(data["mouth"]["opening"]),
                ),
                jawline=JawlineLandmarks(
                    contour=_floats(data["jawline"].get("contour", [])),
                    tension=float(data["jawline"]["tension"]),
                ),
                nose=NoseLandmarks(
                    bridge=_floats(nose.get("bridge", [])),
                    tip=Point.from_any(nose["tip"]) if nose.get("tip") is not None else None,
                    wings=_floats(nose.get("wings", [])),
                ),
                face_shape=FaceShape(
                    symmetry=float(shape.get("symmetry", 0.0)),
                    proportions=_floats(shape.get("proportions", [])),
                ),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ValueError(f"Malformed landmark data: {exc!r}") from exc


def _floats(values) -> list[float]:
    return [float(v) for v in values]


def _eye(data: dict) -> EyeLandmarks:
    return EyeLandmarks(
        upper_lid=_floats(data["upper_lid"]),
        lower_lid=_floats(data["lower_lid"]),
        corners=[Point.from_any(p) for p in data["corners"]],
        pupil_dilation=float(data["pupil_dilation"]),
    )


def _first(values: list[float]) -> float:
    return values[0] if values else 0.0


def _peak(values: list[float]) -> float:
    return max(values) if values else 0.0


def _corner_y(corners: list[Point], index: int) -> float:
    return corners[index].y if len(corners) > index else 0.0


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

class FacialTensionEvaluator:
    """Derive DeceptionMetrics from FaceLandmarks."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()
        cfg = config["landmarks"]
        self.raised_brow_tense_mouth = cfg["raised_brow_tense_mouth"]
        self.pupil_mismatch = cfg["pupil_mismatch"]

    def evaluate(self, landmarks: FaceLandmarks) -> DeceptionMetrics:
        return DeceptionMetrics(
            asymmetry=self.asymmetry(landmarks),
            muscle_tension=self.muscle_tension(landmarks),
            rapid_movements=self.rapid_movements(landmarks),
            unnatural_expressions=self.unnatural_expressions(landmarks),
        )

    # ------------------------------------------------------------------
    # Individual scores
    # ------------------------------------------------------------------

    def asymmetry(self, lm: FaceLandmarks) -> float:
        score = (
            self._eye_asymmetry(lm.left_eye, lm.right_eye)
            + self._eyebrow_asymmetry(lm.eyebrows)
            + self._mouth_asymmetry(lm.mouth)
        )
        return min(1.0, score / 3)

    @staticmethod
    def muscle_tension(lm: FaceLandmarks) -> float:
        tensions = [lm.eyebrows.furrowing, lm.mouth.tension, lm.jawline.tension]
        return sum(tensions) / len(tensions)

    @staticmethod
    def rapid_movements(lm: FaceLandmarks) -> float:
        return max(
            0.0,
            lm.eyebrows.raising,
            lm.mouth.opening,
            lm.left_eye.pupil_dilation,
            lm.right_eye.pupil_dilation,
        )

    def unnatural_expressions(self, lm: FaceLandmarks) -> float:
        score = 0.0
        if (
            lm.eyebrows.raising > self.raised_brow_tense_mouth
            and lm.mouth.tension > self.raised_brow_tense_mouth
        ):
            score += 0.3
        if abs(lm.left_eye.pupil_dilation - lm.right_eye.pupil_dilation) > self.pupil_mismatch:
            score += 0.4
        return min(1.0, score)

    # ------------------------------------------------------------------
    # Left/right comparisons
    # ------------------------------------------------------------------

    @staticmethod
    def _eye_asymmetry(left: EyeLandmarks, right: EyeLandmarks) -> float:
        left_height = abs(_first(left.upper_lid) - _first(left.lower_lid))
        right_height = abs(_first(right.upper_lid) - _first(right.lower_lid))
        height_diff = abs(left_height - right_height)
        corner_diff = abs(_corner_y(left.corners, 0) - _corner_y(right.corners, 0))
        dilation_diff = abs(left.pupil_dilation - right.pupil_dilation)
        return (height_diff + corner_diff + dilation_diff) / 3

    @staticmethod
    def _eyebrow_asymmetry(brows: EyebrowLandmarks) -> float:
        height_diff = abs(_peak(brows.left) - _peak(brows.right))
        movement_diff = abs(brows.raising - brows.furrowing)
        return (height_diff + movement_diff) / 2

    @staticmethod
    def _mouth_asymmetry(mouth: MouthLandmarks) -> float:
        corner_diff = abs(_corner_y(mouth.corners, 0) - _corner_y(mouth.corners, 1))
        lip_diff = abs(_peak(mouth.upper_lip) - _peak(mouth.lower_lip))
        return (corner_diff + lip_diff) / 2
