"""Tests for per-episode storyboard shot generation."""
from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError

from drama_engine.adaptation.models import Episode
from drama_engine.adaptation.shots import (
    StoryboardShot,
    generate_storyboard_shots,
    map_shot_type,
    map_transition,
    normalize_shots,
    reconcile_shots,
)
from drama_engine.errors import UnparseableResponseError, UpstreamError


@pytest.fixture
def episode(scene_factory):
    scenes = [
        scene_factory(1, location="Hall", dialogue="I'm back.", duration=4),
        scene_factory(2, location="Roof", character_actions="Mei jumps", duration=12),
    ]
    return Episode(episode_number=1, title="Episode 1", duration=16, scenes=scenes)


def _shot(**overrides):
    shot = {
        "shotId": 9, "sceneNumber": 1, "shotNumber": 1, "title": "Entrance",
        "shotType": "WIDE establishing", "duration": 4, "transition": "Fade In",
        "sceneDescription": "Lin at the door", "characters": "Lin",
        "action": "enters", "dialogue": "I'm back.", "emotion": "cold",
    }
    shot.update(overrides)
    return shot


class TestMapping:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Extreme close-up", "close-up"),
            ("特写", "close-up"),
            ("Close shot", "close"),
            ("POV", "close"),
            ("Medium two-shot", "medium"),
            ("Full shot", "full"),
            ("Wide", "wide"),
            ("远景", "wide"),
            ("", "medium"),
            (None, "medium"),
            ("dutch angle", "medium"),
        ],
    )
    def test_shot_type(self, raw, expected):
        assert map_shot_type(raw) == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Fade in", "fade-in"),
            ("fade-out", "fade-out"),
            ("Cross dissolve", "dissolve"),
            ("wipe out", "wipe-out"),
            ("Wipe", "wipe-in"),
            ("hard cut", "cut"),
            ("freeze frame", "cut"),
            ("", "cut"),
            ("whip pan", "cut"),
        ],
    )
    def test_transition(self, raw, expected):
        assert map_transition(raw) == expected


class TestNormalize:
    def test_ids_types_and_durations(self):
        shots = normalize_shots([_shot(), _shot(shotId=3, duration=30, title="", shotType="??")])
        assert [s.shot_id for s in shots] == [1, 2]
        assert shots[0].shot_type == "wide"
        assert shots[0].transition == "fade-in"
        assert shots[1].duration == 8
        assert shots[1].title == "Shot 2"
        assert shots[1].shot_type == "medium"

    @pytest.mark.parametrize("raw, expected", [(0, 3), (-2, 3), ("abc", 3), (None, 3), (1, 2), ("5", 5)])
    def test_duration_clamp(self, raw, expected):
        (shot,) = normalize_shots([_shot(duration=raw)])
        assert shot.duration == expected

    def test_model_rejects_unknown_shot_type(self):
        with pytest.raises(ValidationError):
            StoryboardShot(shot_id=1, scene_number=1, shot_type="dutch")

    def test_serializes_camel_case(self):
        (shot,) = normalize_shots([_shot()])
        dumped = shot.model_dump(by_alias=True)
        assert dumped["shotType"] == "wide"
        assert dumped["sceneDescription"] == "Lin at the door"


class TestReconcile:
    def test_matching_count_keeps_model_shots(self, episode):
        shots = reconcile_shots([_shot(), _shot(title="Jump")], episode.scenes)
        assert [s.title for s in shots] == ["Entrance", "Jump"]

    def test_count_mismatch_rebuilds_from_scenes(self, episode, caplog):
        with caplog.at_level(logging.WARNING):
            shots = reconcile_shots([_shot()], episode.scenes)
        assert "rebuilding from scenes" in caplog.text
        assert [s.title for s in shots] == ["Hall", "Roof"]
        assert [s.duration for s in shots] == [4, 8]
        assert shots[0].dialogue == "I'm back."
        assert shots[1].action == "Mei jumps"
        assert all(s.shot_type == "medium" and s.transition == "cut" for s in shots)


class TestGenerateStoryboardShots:
    def test_structured_call(self, episode, scripted_client):
        reply = json.dumps({"shots": [_shot(), _shot(title="Jump", transition="cut")]})
        client = scripted_client([reply])
        shots = generate_storyboard_shots(client, episode, "Lin returns.", api_key="k")

        assert len(shots) == 2
        call = client.calls[0]
        assert call["api_key"] == "k"
        assert call["response_format"]["type"] == "json_schema"
        assert "produce exactly 2 shots" in client.prompt(0)
        assert "Lin returns." in client.prompt(0)

    def test_fenced_reply_with_wrong_count(self, episode, scripted_client):
        reply = "```json\n" + json.dumps({"shots": [_shot()]}) + "\n```"
        shots = generate_storyboard_shots(scripted_client([reply]), episode)
        assert [s.title for s in shots] == ["Hall", "Roof"]

    def test_missing_shots_array(self, episode, scripted_client):
        with pytest.raises(UnparseableResponseError):
            generate_storyboard_shots(scripted_client(['{"scenes": []}']), episode)

    def test_garbage_reply(self, episode, scripted_client):
        with pytest.raises(UnparseableResponseError):
            generate_storyboard_shots(scripted_client(["sorry, no"]), episode)

    def test_upstream_error_propagates(self, episode, scripted_client):
        with pytest.raises(UpstreamError):
            generate_storyboard_shots(scripted_client([UpstreamError("down")]), episode)
