"""Scene duration estimation.

All functions are pure: no I/O, no external state, no randomness.

The model does not emit usable timing, so on-screen seconds are derived from
content density: the slowest single modality (speech, action, or the shot's
base hold time) plus a fixed transition buffer, rounded up and clamped.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from drama_engine.adaptation.models import Scene

_DIALOGUE_NOISE_RE = re.compile(r"[\"“”'‘’（）()\s]")

# Contract limits on a timed Scene.duration.
SCENE_FLOOR_SEC = 2
SCENE_CEILING_SEC = 15


@dataclass(frozen=True)
class DurationParams:
    speech_chars_per_sec: float = 4.0
    # Applies to an empty dialogue or action field.
    idle_component_sec: int = 2
    # (max action length in chars, seconds); longer actions get long_action_sec
    action_buckets: Tuple[Tuple[int, int], ...] = ((10, 2), (30, 3))
    long_action_sec: int = 4
    wide_shot_sec: int = 3
    standard_shot_sec: int = 2
    wide_shot_markers: Tuple[str, ...] = (
        "远景", "全景", "wide", "establishing", "long shot", "full shot", "extreme long",
    )
    transition_buffer_sec: float = 0.5
    min_scene_sec: int = 2
    max_scene_sec: int = 15

    def __post_init__(self) -> None:
        if not SCENE_FLOOR_SEC <= self.min_scene_sec <= self.max_scene_sec <= SCENE_CEILING_SEC:
            raise ValueError(
                f"scene bounds must satisfy {SCENE_FLOOR_SEC} <= min_scene_sec <= max_scene_sec"
                f" <= {SCENE_CEILING_SEC}, got {self.min_scene_sec}..{self.max_scene_sec}"
            )



DEFAULT_DURATION_PARAMS = DurationParams()


def dialogue_seconds(dialogue: str, params: DurationParams = DEFAULT_DURATION_PARAMS) -> int:
    if not dialogue:
        return params.idle_component_sec
    spoken = _DIALOGUE_NOISE_RE.sub("", dialogue)
    return math.ceil(len(spoken) / params.speech_chars_per_sec)


def action_seconds(actions: str, params: DurationParams = DEFAULT_DURATION_PARAMS) -> int:
    if not actions:
        return params.idle_component_sec
    for max_len, seconds in params.action_buckets:
        if len(actions) <= max_len:
            return seconds
    return params.long_action_sec


def shot_base_seconds(composition: str, params: DurationParams = DEFAULT_DURATION_PARAMS) -> int:
    lowered = composition.lower()
    if any(marker in lowered for marker in params.wide_shot_markers):
        return params.wide_shot_sec
    return params.standard_shot_sec


def estimate_scene_duration(scene: Scene, params: DurationParams = DEFAULT_DURATION_PARAMS) -> int:
    """Estimate on-screen seconds for one scene.

        duration = clamp(ceil(max(dialogue, action, shot) + buffer), min, max)

    A scene is never shorter than whichever modality needs the most time.
    """
    longest = max(
        dialogue_seconds(scene.dialogue, params),
        action_seconds(scene.character_actions, params),
        shot_base_seconds(scene.composition, params),
    )
    duration = math.ceil(longest + params.transition_buffer_sec)
    return max(params.min_scene_sec, min(params.max_scene_sec, duration))


def assign_durations(
    scenes: Iterable[Scene],
    params: DurationParams = DEFAULT_DURATION_PARAMS,
) -> List[Scene]:
    """Return copies of *scenes* with ``duration`` filled in."""
    return [
        scene.model_copy(update={"duration": estimate_scene_duration(scene, params)})
        for scene in scenes
    ]
