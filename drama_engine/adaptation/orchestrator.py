"""Fresh-generation pipeline.

Public entry points
-------------------
    analyze_episode_count(client, content) -> EpisodeCountRecommendation
    generate_script(client, content, episode_count, duration_per_episode, story_type)
        -> ScriptDocument

generate_script makes exactly two model calls, adaptation then storyboard,
and runs everything after them as pure computation:

    extract_sections -> parse_scenes -> assign_durations
        -> segment_episodes -> evaluate_quality
"""
from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from typing import Optional

from drama_engine.adaptation.models import (
    EpisodeCountRecommendation,
    MainLine,
    QualityMetrics,
    QualityStatus,
    ScriptDocument,
    ScriptMetadata,
    StoryStructure,
    StructurePhase,
    StructurePlan,
)
from drama_engine.adaptation.prompts import (
    ANALYSIS_MARKER,
    STORY_MARKER,
    STORYBOARD_MARKER,
    SYSTEM_PROMPT,
    build_adaptation_prompt,
    build_episode_count_prompt,
    build_storyboard_prompt,
)
from drama_engine.adaptation.quality import evaluate_quality
from drama_engine.adaptation.scene_parser import parse_scenes
from drama_engine.adaptation.sections import extract_sections
from drama_engine.adaptation.segmenter import segment_episodes
from drama_engine.adaptation.timing import DEFAULT_DURATION_PARAMS, DurationParams, assign_durations
from drama_engine.errors import UpstreamError
from drama_engine.llm import ChatClient, system, user

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Script"
DEFAULT_RECOMMENDATION = 3
STORY_CONCEPT_CHARS = 200

_RECOMMENDED_RE = re.compile(r"(?:recommended episodes|推荐集数)\s*[:：]\s*(\d+)", re.IGNORECASE)
_ANALYSIS_LINE_RE = re.compile(r"(?:analysis|分析说明)\s*[:：]\s*(.+)", re.IGNORECASE)
_BOOK_TITLE_RE = re.compile(r"《([^》]+)》")
_TITLE_LINE_RE = re.compile(r"(?:title|标题)\s*[:：]\s*([^\n]+)", re.IGNORECASE)

# (exclusive upper bound on character count, recommended episodes)
_LENGTH_TABLE = ((500, 2), (1500, 3), (3000, 5), (6000, 10))
_LENGTH_TABLE_MAX = 15


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# ── Episode-count recommendation ──────────────────────────────────────────────


def recommend_by_length(content: str) -> int:
    for limit, episodes in _LENGTH_TABLE:
        if len(content) < limit:
            return episodes
    return _LENGTH_TABLE_MAX


def analyze_episode_count(
    client: ChatClient,
    content: str,
    api_key: Optional[str] = None,
) -> EpisodeCountRecommendation:
    """Ask the model how many episodes *content* supports.

    A failed model call is not fatal here: the recommendation falls back to
    a table keyed on the content length.
    """
    try:
        reply = client.complete([user(build_episode_count_prompt(content))], api_key=api_key)
    except UpstreamError as exc:
        logger.warning("episode-count analysis failed, using length table: %s", exc.cause)
        return EpisodeCountRecommendation(
            recommended_episodes=recommend_by_length(content),
            analysis=f"Recommended from content length ({len(content)} characters).",
        )

    count = _RECOMMENDED_RE.search(reply)
    note = _ANALYSIS_LINE_RE.search(reply)
    recommended = int(count.group(1)) if count else DEFAULT_RECOMMENDATION
    return EpisodeCountRecommendation(
        recommended_episodes=max(1, min(30, recommended)),
        analysis=note.group(1).strip() if note else "Recommended from content length and complexity.",
    )


# ── Full generation ───────────────────────────────────────────────────────────


def find_title(*texts: str) -> str:
    for text in texts:
        m = _BOOK_TITLE_RE.search(text)
        if m:
            return m.group(1).strip()
    for text in texts:
        m = _TITLE_LINE_RE.search(text)
        if m:
            return m.group(1).strip().strip("*").strip() or DEFAULT_TITLE
    return DEFAULT_TITLE


def default_story_structure(episode_count: int) -> StoryStructure:
    return StoryStructure(
        main_line=MainLine(description="Derived by the model from the source material"),
        structure_plan=StructurePlan(
            opening=StructurePhase(episode_range="1", purpose="Opening"),
            development=StructurePhase(
                episode_range=f"2-{math.floor(episode_count * 0.7)}", purpose="Development"
            ),
            climax=StructurePhase(episode_range=str(math.floor(episode_count * 0.8)), purpose="Climax"),
            ending=StructurePhase(episode_range=str(episode_count), purpose="Ending"),
        ),
    )


def _placeholder_metrics() -> QualityMetrics:
    return QualityMetrics(
        main_line_clarity=7,
        conflict_progression=7,
        pacing_control=7,
        dialogue_quality=7,
        visual_design=6,
        overall_score=6.8,
        quality_status=QualityStatus.REVISION_NEEDED,
    )


def _complete_text(client: ChatClient, prompt: str, stage: str, api_key: Optional[str]) -> str:
    reply = client.complete([system(SYSTEM_PROMPT), user(prompt)], api_key=api_key)
    if not reply.strip():
        raise UpstreamError(f"model returned empty {stage} text")
    return reply


def generate_script(
    client: ChatClient,
    content: str,
    episode_count: int,
    duration_per_episode: int,
    story_type: str,
    api_key: Optional[str] = None,
    now: Optional[str] = None,
    duration_params: DurationParams = DEFAULT_DURATION_PARAMS,
) -> ScriptDocument:
    """Adapt *content* and compile the storyboard into a scored ScriptDocument.

    Args:
        episode_count:        episodes the caller asked for; scored against.
        duration_per_episode: segmentation target in seconds.
        now:                  ISO-8601 generation timestamp; defaults to UTC now.

    Raises:
        UpstreamError:       either model call failed or returned nothing.
        NoScenesParsedError: the storyboard contained no recognizable scene.
        ValueError:          duration_per_episode is not positive.
    """
    if duration_per_episode <= 0:
        raise ValueError(f"duration_per_episode must be positive, got {duration_per_episode}")
    logger.info("adapting %d characters into %d episodes", len(content), episode_count)
    adaptation = _complete_text(
        client,
        build_adaptation_prompt(content, story_type, episode_count, duration_per_episode),
        "adaptation",
        api_key,
    )
    sections = extract_sections(adaptation)

    storyboard = _complete_text(
        client,
        build_storyboard_prompt(sections.story, story_type, duration_per_episode),
        "storyboard",
        api_key,
    )
    raw_content = (
        f"{ANALYSIS_MARKER}\n{sections.analysis}\n\n"
        f"{STORY_MARKER}\n{sections.story}\n\n"
        f"{STORYBOARD_MARKER}\n{storyboard}"
    )

    scenes = assign_durations(parse_scenes(storyboard), duration_params)
    episodes = segment_episodes(scenes, duration_per_episode)
    logger.info("parsed %d scenes into %d episodes", len(scenes), len(episodes))

    document = ScriptDocument(
        metadata=ScriptMetadata(
            title=find_title(sections.story, storyboard, sections.analysis),
            story_concept=sections.analysis[:STORY_CONCEPT_CHARS],
            episode_count=len(episodes),
            requested_episodes=episode_count,
            total_duration=sum(s.duration for s in scenes),
            story_type=story_type,
            generation_timestamp=now or utc_timestamp(),
        ),
        adaptation_analysis=sections.analysis,
        adapted_story=sections.story,
        story_structure=default_story_structure(len(episodes)),
        episodes=episodes,
        quality_metrics=_placeholder_metrics(),
        raw_content=raw_content,
    )
    return document.model_copy(update={"quality_metrics": evaluate_quality(document)})
