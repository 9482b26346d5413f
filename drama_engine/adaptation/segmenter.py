"""Greedy episode segmentation.

Scenes are packed left to right.  The running episode closes before the next
scene when it is already close to the target and the next scene would push it
clearly past it:

    (d >= 0.8 T and d' > 1.2 T)  or  (d >= 0.9 T and d' > 1.3 T)

where d is the running duration and d' = d + next scene.  Scenes are never
split; whatever is left over forms the last episode.
"""
from __future__ import annotations

from typing import List, Sequence

from drama_engine.adaptation.models import Episode, Scene

UNDER_RATIO = 0.8
OVER_RATIO = 1.2
NEAR_RATIO = 0.9
FAR_OVER_RATIO = 1.3

MAX_INTENSITY = 5
KEY_EVENT_LIMIT = 3
KEY_EVENT_CHARS = 50
CONFLICT_CHARS = 80
DEFAULT_CORE_CONFLICT = "Plot development"


def should_close(running: float, candidate: float, target: float) -> bool:
    return (running >= target * UNDER_RATIO and candidate > target * OVER_RATIO) or (
        running >= target * NEAR_RATIO and candidate > target * FAR_OVER_RATIO
    )


def group_scenes(scenes: Sequence[Scene], target: float) -> List[List[Scene]]:
    """Partition *scenes* into contiguous groups; scene ids restart at 1 per group."""
    if target <= 0:
        raise ValueError(f"target duration must be positive, got {target}")

    groups: List[List[Scene]] = []
    current: List[Scene] = []
    running = 0
    for scene in scenes:
        if current and should_close(running, running + scene.duration, target):
            groups.append(current)
            current = []
            running = 0
        current.append(scene.model_copy(update={"scene_id": len(current) + 1}))
        running += scene.duration
    if current:
        groups.append(current)
    return groups


def segment_episodes(scenes: Sequence[Scene], target: float) -> List[Episode]:
    """Group timed scenes into episodes of roughly *target* seconds.

    Raises:
        ValueError: target is not positive.
    """
    groups = group_scenes(scenes, target)
    return [
        build_episode(number, group, index=number - 1, total=len(groups))
        for number, group in enumerate(groups, start=1)
    ]


# ── Episode derivation ────────────────────────────────────────────────────────


def conflict_intensity(index: int, total: int) -> int:
    """1 for the first episode, 5 for the last, non-decreasing in between."""
    return 1 + (index * (MAX_INTENSITY - 1)) // max(total - 1, 1)


def key_events(scenes: Sequence[Scene]) -> List[str]:
    events = [s.dialogue[:KEY_EVENT_CHARS] for s in scenes if len(s.dialogue) > 5]
    return events[:KEY_EVENT_LIMIT]


def core_conflict(scenes: Sequence[Scene]) -> str:
    conflicts = list(dict.fromkeys(s.scene_conflict for s in scenes if len(s.scene_conflict) > 5))
    if conflicts:
        joined = "; ".join(conflicts[:2])
        return joined[:CONFLICT_CHARS] + "..." if len(joined) > CONFLICT_CHARS else joined

    notes = [s.adaptation_note for s in scenes if len(s.adaptation_note) > 10]
    if notes:
        return "; ".join(notes)[:CONFLICT_CHARS]

    dialogues = [s.dialogue for s in scenes if len(s.dialogue) > 5]
    if dialogues:
        first = dialogues[0]
        return first[:50] + "..." if len(first) > 50 else first

    locations = [s.location for s in scenes if s.location]
    if locations:
        return "Scene flow: " + " → ".join(locations[:3])
    return DEFAULT_CORE_CONFLICT


def build_episode(number: int, scenes: List[Scene], *, index: int, total: int) -> Episode:
    return Episode(
        episode_number=number,
        title=f"Episode {number}",
        duration=sum(s.duration for s in scenes),
        core_conflict=core_conflict(scenes),
        conflict_intensity=conflict_intensity(index, total),
        key_events=key_events(scenes),
        narrative_summary=" → ".join(s.location for s in scenes),
        scenes=scenes,
        hook=scenes[0].dialogue if scenes else "",
        cliffhanger=scenes[-1].dialogue if scenes else "",
    )
