"""Tests for the ScriptDocument pydantic models."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from drama_engine.adaptation.models import (
    Episode,
    EpisodeCountRecommendation,
    QualityStatus,
    Scene,
    ScriptDocument,
)


class TestAliases:
    def test_dump_uses_camel_case(self, scene_factory):
        dumped = scene_factory(character_actions="runs").model_dump(by_alias=True)
        assert dumped["sceneId"] == 1
        assert dumped["characterActions"] == "runs"
        assert dumped["audioDesign"] == {"backgroundMusic": "", "soundEffects": [], "emotionalTone": ""}

    def test_accepts_both_spellings(self):
        camel = Scene.model_validate({"sceneId": 2, "location": "Dock", "emotionalTone": "calm"})
        snake = Scene.model_validate({"scene_id": 2, "location": "Dock", "emotional_tone": "calm"})
        assert camel == snake

    def test_unknown_fields_ignored(self):
        scene = Scene.model_validate({"sceneId": 1, "location": "Dock", "cameraAngle": "low"})
        assert not hasattr(scene, "cameraAngle")


class TestConstraints:
    @pytest.mark.parametrize("duration", [-1, 16])
    def test_scene_duration_bounds(self, duration):
        with pytest.raises(ValidationError):
            Scene(scene_id=1, location="Dock", duration=duration)

    @pytest.mark.parametrize("intensity", [0, 6])
    def test_intensity_bounds(self, intensity):
        with pytest.raises(ValidationError):
            Episode(episode_number=1, conflict_intensity=intensity)

    def test_sub_scores_bounded(self, metrics_factory):
        with pytest.raises(ValidationError):
            metrics_factory(pacing_control=11)

    @pytest.mark.parametrize("episodes", [0, 31])
    def test_recommendation_bounds(self, episodes):
        with pytest.raises(ValidationError):
            EpisodeCountRecommendation(recommended_episodes=episodes, analysis="x")

    def test_status_serializes_as_string(self, metrics_factory):
        dumped = metrics_factory(quality_status=QualityStatus.FAIL).model_dump(mode="json", by_alias=True)
        assert dumped["qualityStatus"] == "FAIL"


class TestScriptDocument:
    def test_defaults(self, document_factory):
        doc = document_factory([])
        assert doc.schema_version == "1.0.0"
        assert doc.revision == 0
        assert doc.metadata.version == "1.0"

    def test_all_scenes_in_order(self, document_factory, scene_factory):
        episodes = [
            Episode(episode_number=1, scenes=[scene_factory(1, location="A"), scene_factory(2, location="B")]),
            Episode(episode_number=2, scenes=[scene_factory(1, location="C")]),
        ]
        doc = document_factory(episodes)
        assert [s.location for s in doc.all_scenes()] == ["A", "B", "C"]

    def test_round_trip_through_wire_form(self, document_factory, scene_factory):
        doc = document_factory([Episode(episode_number=1, scenes=[scene_factory()])])
        again = ScriptDocument.model_validate(doc.model_dump(mode="json", by_alias=True))
        assert again == doc
