"""Per-episode storyboard shots: one shot per basic scene.

The model is asked for exactly one shot per scene.  When it returns a
different number, its output is discarded and the shots are rebuilt from the
known scenes; that is logged, not raised.  Every shot then goes through
``normalize_shots`` so ids are sequential and shot types, transitions and
durations fall inside their allowed sets.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from drama_engine.adaptation.models import Episode, Scene
from drama_engine.adaptation.prompts import SHOTS_SYSTEM_PROMPT, build_shots_prompt
from drama_engine.adaptation.structured import parse_structured_response
from drama_engine.errors import UnparseableResponseError
from drama_engine.llm import ChatClient, system, user

logger = logging.getLogger(__name__)

ShotType = Literal["close-up", "close", "medium", "full", "wide"]
Transition = Literal["cut", "fade-in", "fade-out", "dissolve", "wipe-in", "wipe-out"]

MIN_SHOT_SEC = 2
MAX_SHOT_SEC = 8
DEFAULT_SHOT_SEC = 3

# Checked in order; the first needle contained in the raw value wins.
_SHOT_TYPE_NEEDLES = (
    ("close-up", ("close-up", "closeup", "extreme close", "特写")),
    ("close", ("close", "pov", "近景", "主观")),
    ("medium", ("medium", "mid", "two-shot", "中景", "双人")),
    ("full", ("full", "全景")),
    ("wide", ("wide", "long shot", "establishing", "远景")),
)
_TRANSITION_NEEDLES = (
    ("fade-in", ("fade-in", "fade in", "淡入")),
    ("fade-out", ("fade-out", "fade out", "淡出")),
    ("dissolve", ("dissolve", "cross", "叠")),
    ("wipe-out", ("wipe-out", "wipe out", "划出")),
    ("wipe-in", ("wipe", "划")),
    ("cut", ("cut", "freeze", "切", "定格")),
)

_SHOTS_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "storyboard_shots",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "shots": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "shotId": {"type": "integer"},
                            "sceneNumber": {"type": "integer"},
                            "shotNumber": {"type": "integer"},
                            "title": {"type": "string"},
                            "shotType": {"type": "string"},
                            "duration": {"type": "integer"},
                            "transition": {"type": "string"},
                            "sceneDescription": {"type": "string"},
                            "characters": {"type": "string"},
                            "action": {"type": "string"},
                            "dialogue": {"type": "string"},
                            "emotion": {"type": "string"},
                        },
                        "required": [
                            "shotId", "sceneNumber", "shotNumber", "title", "shotType",
                            "duration", "transition", "sceneDescription", "characters",
                            "action", "dialogue", "emotion",
                        ],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["shots"],
            "additionalProperties": False,
        },
    },
}


class StoryboardShot(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    shot_id: int = Field(ge=1)
    scene_number: int
    shot_number: int = 1
    title: str = ""
    shot_type: ShotType = "medium"
    duration: int = Field(default=DEFAULT_SHOT_SEC, ge=MIN_SHOT_SEC, le=MAX_SHOT_SEC)
    transition: Transition = "cut"
    scene_description: str = ""
    characters: str = ""
    action: str = ""
    dialogue: str = ""
    emotion: str = ""


def map_shot_type(raw: Optional[str]) -> str:
    lowered = (raw or "").strip().lower()
    for shot_type, needles in _SHOT_TYPE_NEEDLES:
        if any(n in lowered for n in needles):
            return shot_type
    return "medium"


def map_transition(raw: Optional[str]) -> str:
    lowered = (raw or "").strip().lower()
    for transition, needles in _TRANSITION_NEEDLES:
        if any(n in lowered for n in needles):
            return transition
    return "cut"


def _clamp_duration(raw: Any) -> int:
    try:
        seconds = int(raw)
    except (TypeError, ValueError):
        seconds = 0
    if seconds <= 0:
        seconds = DEFAULT_SHOT_SEC
    return max(MIN_SHOT_SEC, min(MAX_SHOT_SEC, seconds))


def shots_from_scenes(scenes: Sequence[Scene]) -> List[Dict[str, Any]]:
    return [
        {
            "shotId": index,
            "sceneNumber": scene.scene_id,
            "shotNumber": 1,
            "title": scene.location,
            "shotType": "medium",
            "duration": scene.duration,
            "transition": "cut",
            "sceneDescription": scene.composition,
            "characters": "",
            "action": scene.character_actions,
            "dialogue": scene.dialogue,
            "emotion": scene.emotional_tone,
        }
        for index, scene in enumerate(scenes, start=1)
    ]


def normalize_shots(raw_shots: Sequence[Dict[str, Any]]) -> List[StoryboardShot]:
    shots: List[StoryboardShot] = []
    for index, raw in enumerate(raw_shots, start=1):
        shots.append(
            StoryboardShot(
                shot_id=index,
                scene_number=raw.get("sceneNumber") or index,
                shot_number=raw.get("shotNumber") or 1,
                title=raw.get("title") or f"Shot {index}",
                shot_type=map_shot_type(raw.get("shotType")),
                duration=_clamp_duration(raw.get("duration")),
                transition=map_transition(raw.get("transition")),
                scene_description=raw.get("sceneDescription") or "",
                characters=raw.get("characters") or "",
                action=raw.get("action") or "",
                dialogue=raw.get("dialogue") or "",
                emotion=raw.get("emotion") or "",
            )
        )
    return shots


def reconcile_shots(raw_shots: Sequence[Dict[str, Any]], scenes: Sequence[Scene]) -> List[StoryboardShot]:
    """Normalize *raw_shots*, rebuilding them from *scenes* on a count mismatch."""
    if len(raw_shots) != len(scenes):
        logger.warning(
            "model returned %d shots for %d scenes; rebuilding from scenes",
            len(raw_shots), len(scenes),
        )
        raw_shots = shots_from_scenes(scenes)
    return normalize_shots(raw_shots)


def generate_storyboard_shots(
    client: ChatClient,
    episode: Episode,
    adapted_story: str = "",
    api_key: Optional[str] = None,
) -> List[StoryboardShot]:
    """Ask the model for one shot per scene of *episode*.

    Raises:
        UpstreamError:            the model call failed.
        UnparseableResponseError: the answer held no usable ``shots`` array.
    """
    reply = client.complete(
        [system(SHOTS_SYSTEM_PROMPT), user(build_shots_prompt(episode, adapted_story))],
        api_key=api_key,
        response_format=_SHOTS_RESPONSE_FORMAT,
    )
    data = parse_structured_response(reply, salvage=("shots",))
    raw_shots = data.get("shots") if isinstance(data, dict) else data
    if not isinstance(raw_shots, list):
        raise UnparseableResponseError("model answer has no shots array")
    try:
        return reconcile_shots([s for s in raw_shots if isinstance(s, dict)], episode.scenes)
    except ValidationError as exc:
        raise UnparseableResponseError(f"model shots do not fit the shot model: {exc.error_count()} errors") from exc
