"""Closed-loop repair of a low-scoring ScriptDocument.

One extra model call regenerates the storyboard with the failing quality
dimensions as directives.  The result is re-parsed, re-timed and
re-segmented, then merged back into the document by episode index: the
regenerated scenes win, but non-blank core conflicts, key events and hooks
from the existing document are kept so downstream references stay valid.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Tuple

from drama_engine.adaptation.models import Episode, QualityMetrics, ScriptDocument
from drama_engine.adaptation.orchestrator import utc_timestamp
from drama_engine.adaptation.prompts import OPTIMIZED_MARKER, build_optimize_prompt
from drama_engine.adaptation.quality import evaluate_quality
from drama_engine.adaptation.scene_parser import parse_scenes
from drama_engine.adaptation.segmenter import segment_episodes
from drama_engine.adaptation.timing import DEFAULT_DURATION_PARAMS, DurationParams, assign_durations
from drama_engine.errors import UpstreamError
from drama_engine.llm import ChatClient, user

logger = logging.getLogger(__name__)

FALLBACK_TARGET_SEC = 120

# (attribute, passing score, issue, directive)
_DIMENSIONS: Tuple[Tuple[str, int, str, str], ...] = (
    (
        "main_line_clarity", 8,
        "Main line is unclear: state the protagonist's goal and the core conflict.",
        "Main line: show the protagonist's goal in the opening; every scene advances it.",
    ),
    (
        "conflict_progression", 8,
        "Conflict does not escalate: raise the stakes episode by episode.",
        "Conflict: escalate step by step and add tension.",
    ),
    (
        "pacing_control", 8,
        "Pacing is weak: add scene changes and end every episode on suspense.",
        "Pacing: vary the scenes and keep each one short.",
    ),
    (
        "dialogue_quality", 8,
        "Dialogue is weak: add stronger lines and an opening hook.",
        "Dialogue: make every line terse and plot-driving.",
    ),
    (
        "visual_design", 7,
        "Visual design is thin: add concrete frame descriptions.",
        "Visuals: describe palette, lighting and composition in every scene.",
    ),
)


def failing_dimensions(metrics: QualityMetrics) -> List[Tuple[str, str]]:
    """(issue, directive) for every dimension below its passing score."""
    return [
        (issue, directive)
        for attr, passing, issue, directive in _DIMENSIONS
        if getattr(metrics, attr) < passing
    ]


def implied_target(document: ScriptDocument, duration_per_episode: Optional[int] = None) -> int:
    if duration_per_episode:
        return duration_per_episode
    meta = document.metadata
    average = Decimal(meta.total_duration) / max(meta.episode_count, 1)
    return int(average.quantize(Decimal(1), rounding=ROUND_HALF_UP)) or FALLBACK_TARGET_SEC


def merge_episodes_by_index(new: Sequence[Episode], original: Sequence[Episode]) -> List[Episode]:
    """Keep regenerated scenes, restore the original bookkeeping fields.

    Only non-blank values from the original win, so an episode whose original
    key_events list was empty takes the regenerated events.
    """
    merged: List[Episode] = []
    for index, episode in enumerate(new):
        if index >= len(original):
            merged.append(episode)
            continue
        previous = original[index]
        update = {}
        if previous.core_conflict.strip():
            update["core_conflict"] = previous.core_conflict
        if previous.key_events:
            update["key_events"] = list(previous.key_events)
        if previous.hook.strip():
            update["hook"] = previous.hook
        merged.append(episode.model_copy(update=update))
    return merged


def optimize_script(
    client: ChatClient,
    document: ScriptDocument,
    content: str,
    duration_per_episode: Optional[int] = None,
    api_key: Optional[str] = None,
    now: Optional[str] = None,
    duration_params: DurationParams = DEFAULT_DURATION_PARAMS,
) -> ScriptDocument:
    """Regenerate the storyboard of *document* against its failing dimensions.

    Returns *document* itself, without a model call, when no dimension fails.

    Raises:
        UpstreamError:       the model call failed or returned nothing.
        NoScenesParsedError: the regenerated storyboard had no scenes.
    """
    failing = failing_dimensions(document.quality_metrics)
    if not failing:
        logger.info("all quality dimensions pass; nothing to optimize")
        return document

    issues = [issue for issue, _ in failing]
    directives = [directive for _, directive in failing]
    prompt = build_optimize_prompt(
        story=document.adapted_story or content,
        story_type=document.metadata.story_type,
        main_line=document.story_structure.main_line,
        episodes=document.episodes,
        issues=issues,
        directives=directives,
    )
    logger.info("optimizing %d failing dimensions", len(failing))
    storyboard = client.complete([user(prompt)], api_key=api_key)
    if not storyboard.strip():
        raise UpstreamError("model returned empty optimized storyboard")

    scenes = assign_durations(parse_scenes(storyboard), duration_params)
    target = implied_target(document, duration_per_episode)
    episodes = merge_episodes_by_index(segment_episodes(scenes, target), document.episodes)

    optimized = document.model_copy(
        update={
            "metadata": document.metadata.model_copy(
                update={
                    "episode_count": len(episodes),
                    "total_duration": sum(s.duration for s in scenes),
                    "generation_timestamp": now or utc_timestamp(),
                }
            ),
            "episodes": episodes,
            "raw_content": f"{document.raw_content}\n\n{OPTIMIZED_MARKER}\n{storyboard}",
        }
    )
    return optimized.model_copy(update={"quality_metrics": evaluate_quality(optimized)})
