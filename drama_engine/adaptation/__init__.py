"""Storyboard text → timed, segmented, scored ScriptDocument."""

from drama_engine.adaptation.export import EXPORT_FORMATS, export_document
from drama_engine.adaptation.insights import refresh_episode_insights, refresh_insights_in_store
from drama_engine.adaptation.models import (
    AudioDesign,
    Episode,
    EpisodeCountRecommendation,
    QualityMetrics,
    QualityStatus,
    Scene,
    ScriptDocument,
    ScriptMetadata,
    StoryStructure,
    VisualElements,
)
from drama_engine.adaptation.optimizer import merge_episodes_by_index, optimize_script
from drama_engine.adaptation.orchestrator import analyze_episode_count, generate_script
from drama_engine.adaptation.quality import evaluate_quality
from drama_engine.adaptation.scene_parser import parse_scenes
from drama_engine.adaptation.sections import AdaptationSections, extract_sections
from drama_engine.adaptation.segmenter import segment_episodes
from drama_engine.adaptation.shots import StoryboardShot, reconcile_shots
from drama_engine.adaptation.timing import DEFAULT_DURATION_PARAMS, DurationParams, estimate_scene_duration

__all__ = [
    "analyze_episode_count",
    "generate_script",
    "optimize_script",
    "merge_episodes_by_index",
    "export_document",
    "EXPORT_FORMATS",
    "refresh_episode_insights",
    "refresh_insights_in_store",
    "reconcile_shots",
    "StoryboardShot",
    "extract_sections",
    "AdaptationSections",
    "parse_scenes",
    "estimate_scene_duration",
    "DurationParams",
    "DEFAULT_DURATION_PARAMS",
    "segment_episodes",
    "evaluate_quality",
    "AudioDesign",
    "Episode",
    "EpisodeCountRecommendation",
    "QualityMetrics",
    "QualityStatus",
    "Scene",
    "ScriptDocument",
    "ScriptMetadata",
    "StoryStructure",
    "VisualElements",
]
