"""ScriptDocument data models: the canonical data contract for the pipeline.

Python attributes are snake_case; every model serializes with camelCase
aliases (``sceneId``, ``characterActions``...) so exported documents keep the
documented field names.  extra="ignore" drops unknown fields from older or
newer documents instead of rejecting them.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CONFIG = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)


# ── Scene ─────────────────────────────────────────────────────────────────────


class AudioDesign(BaseModel):
    """Descriptive audio notes; passed through, never validated."""

    model_config = _CONFIG

    background_music: str = ""
    sound_effects: List[str] = []
    emotional_tone: str = ""


class VisualElements(BaseModel):
    """Descriptive visual notes; passed through, never validated."""

    model_config = _CONFIG

    color_scheme: str = ""
    key_objects: List[str] = []
    character_expressions: str = ""


class Scene(BaseModel):
    """One story beat.

    duration is 0 straight out of the parser and lies in [2, 15] once the
    duration estimator has run.
    """

    model_config = _CONFIG

    scene_id: int
    location: str
    character_actions: str = ""
    dialogue: str = ""
    duration: int = Field(default=0, ge=0, le=15)
    composition: str = ""
    emotional_tone: str = ""
    adaptation_note: str = ""
    scene_conflict: str = ""
    audio_design: AudioDesign = Field(default_factory=AudioDesign)
    visual_elements: VisualElements = Field(default_factory=VisualElements)


# ── Episode ───────────────────────────────────────────────────────────────────


class Episode(BaseModel):
    """A contiguous run of scenes; scene ids restart at 1 inside each episode."""

    model_config = _CONFIG

    episode_number: int = Field(ge=1)
    title: str = ""
    duration: int = 0
    core_conflict: str = ""
    conflict_intensity: int = Field(default=1, ge=1, le=5)
    key_events: List[str] = []
    narrative_summary: str = ""
    scenes: List[Scene] = []
    hook: str = ""
    cliffhanger: str = ""
    insight_status: Optional[str] = None


# ── Document ──────────────────────────────────────────────────────────────────


class QualityStatus(str, Enum):
    PASS = "PASS"
    REVISION_NEEDED = "REVISION_NEEDED"
    FAIL = "FAIL"


class QualityMetrics(BaseModel):
    model_config = _CONFIG

    main_line_clarity: int = Field(ge=1, le=10)
    conflict_progression: int = Field(ge=1, le=10)
    pacing_control: int = Field(ge=1, le=10)
    dialogue_quality: int = Field(ge=1, le=10)
    visual_design: int = Field(ge=1, le=10)
    overall_score: float
    quality_status: QualityStatus
    issues: List[str] = []
    suggestions: List[str] = []

    def sub_scores(self) -> List[int]:
        return [
            self.main_line_clarity,
            self.conflict_progression,
            self.pacing_control,
            self.dialogue_quality,
            self.visual_design,
        ]


class ScriptMetadata(BaseModel):
    model_config = _CONFIG

    title: str
    story_concept: str = ""
    episode_count: int = 0
    requested_episodes: Optional[int] = None
    total_duration: int = 0
    story_type: str = ""
    generation_timestamp: str  # ISO 8601
    version: str = "1.0"


class MainLine(BaseModel):
    model_config = _CONFIG

    description: str = ""
    goal: str = ""
    conflict: str = ""


class StructurePhase(BaseModel):
    model_config = _CONFIG

    episode_range: str = ""
    purpose: str = ""
    key_events: List[str] = []


class StructurePlan(BaseModel):
    model_config = _CONFIG

    opening: StructurePhase = Field(default_factory=StructurePhase)
    development: StructurePhase = Field(default_factory=StructurePhase)
    climax: StructurePhase = Field(default_factory=StructurePhase)
    ending: StructurePhase = Field(default_factory=StructurePhase)


class StoryStructure(BaseModel):
    """Four narrative-phase descriptors.  Cosmetic; never scored."""

    model_config = _CONFIG

    main_line: MainLine = Field(default_factory=MainLine)
    structure_plan: StructurePlan = Field(default_factory=StructurePlan)


class ScriptDocument(BaseModel):
    """The generation unit.

    raw_content keeps every piece of raw model text that went into the
    document, including text that failed to parse.  revision is stamped by the
    document store and is 0 for documents that were never persisted.
    """

    model_config = _CONFIG

    schema_version: str = "1.0.0"
    metadata: ScriptMetadata
    adaptation_analysis: str = ""
    adapted_story: str = ""
    story_structure: StoryStructure = Field(default_factory=StoryStructure)
    episodes: List[Episode] = []
    quality_metrics: QualityMetrics
    raw_content: str = ""
    revision: int = 0

    def all_scenes(self) -> List[Scene]:
        return [scene for episode in self.episodes for scene in episode.scenes]


class EpisodeCountRecommendation(BaseModel):
    model_config = _CONFIG

    recommended_episodes: int = Field(ge=1, le=30)
    analysis: str
