"""Tests for content-density scene duration estimation."""
from __future__ import annotations

import pytest

from drama_engine.adaptation.models import Scene
from drama_engine.adaptation.timing import (
    DurationParams,
    action_seconds,
    assign_durations,
    dialogue_seconds,
    estimate_scene_duration,
    shot_base_seconds,
)


# ── Components ─────────────────────────────────────────────────────────────────


class TestComponents:
    def test_empty_dialogue_is_idle(self):
        assert dialogue_seconds("") == 2

    def test_dialogue_is_four_chars_per_second_rounded_up(self):
        assert dialogue_seconds("我回来了你们准备好了") == 3  # 10 chars

    def test_quotes_and_whitespace_do_not_count(self):
        assert dialogue_seconds('"ab cd"') == 1
        assert dialogue_seconds("“我回来了”") == 1

    def test_other_punctuation_counts(self):
        assert dialogue_seconds("你好，再见？") == 2  # 6 chars

    @pytest.mark.parametrize(
        "actions, expected",
        [("", 2), ("runs", 2), ("x" * 10, 2), ("x" * 11, 3), ("x" * 30, 3), ("x" * 31, 4)],
    )
    def test_action_buckets(self, actions: str, expected: int):
        assert action_seconds(actions) == expected

    @pytest.mark.parametrize(
        "composition, expected",
        [
            ("", 2),
            ("[Close-up] a tear", 2),
            ("[Wide] the harbour", 3),
            ("Establishing shot of the city", 3),
            ("远景，城市夜色", 3),
            ("全景：宴会厅", 3),
        ],
    )
    def test_shot_base(self, composition: str, expected: int):
        assert shot_base_seconds(composition) == expected


# ── Scene estimate ─────────────────────────────────────────────────────────────


class TestEstimateSceneDuration:
    def test_empty_scene_is_idle_plus_buffer(self, scene_factory):
        assert estimate_scene_duration(scene_factory()) == 3

    def test_dialogue_dominates(self, scene_factory):
        scene = scene_factory(dialogue="abcdefghijklmnop")  # 16 chars -> 4s
        assert estimate_scene_duration(scene) == 5

    def test_wide_shot_dominates_short_content(self, scene_factory):
        assert estimate_scene_duration(scene_factory(composition="[Wide] hall")) == 4

    def test_long_action(self, scene_factory):
        assert estimate_scene_duration(scene_factory(character_actions="x" * 31)) == 5

    def test_clamped_to_max(self, scene_factory):
        assert estimate_scene_duration(scene_factory(dialogue="x" * 100)) == 15

    def test_custom_params(self, scene_factory):
        params = DurationParams(max_scene_sec=10, transition_buffer_sec=0)
        assert estimate_scene_duration(scene_factory(dialogue="x" * 100), params) == 10
        assert estimate_scene_duration(scene_factory(), params) == 2

    @pytest.mark.parametrize("length", [0, 1, 7, 40, 59, 61, 200])
    def test_always_within_bounds(self, scene_factory, length: int):
        duration = estimate_scene_duration(scene_factory(dialogue="x" * length))
        assert 2 <= duration <= 15

    def test_three_short_action_scenes(self, scene_factory):
        scenes = [scene_factory(i, character_actions="walks in") for i in (1, 2, 3)]
        assert [estimate_scene_duration(s) for s in scenes] == [3, 3, 3]


class TestAssignDurations:
    def test_returns_copies(self, scene_factory):
        original = scene_factory(duration=0, dialogue="abcdefghijklmnop")
        (timed,) = assign_durations([original])
        assert timed.duration == 5
        assert original.duration == 0
        assert timed.dialogue == original.dialogue

    def test_preserves_order(self, scene_factory):
        scenes = [scene_factory(i) for i in (3, 1, 2)]
        assert [s.scene_id for s in assign_durations(scenes)] == [3, 1, 2]


class TestDurationParams:
    @pytest.mark.parametrize(
        "bounds",
        [{"max_scene_sec": 20}, {"min_scene_sec": 1}, {"min_scene_sec": 9, "max_scene_sec": 8}],
    )
    def test_bounds_outside_contract_rejected(self, bounds):
        with pytest.raises(ValueError):
            DurationParams(**bounds)

    def test_timed_scene_stays_loadable(self, scene_factory):
        params = DurationParams(min_scene_sec=3, max_scene_sec=12)
        (timed,) = assign_durations([scene_factory(dialogue="x" * 70)], params)
        assert timed.duration == 12
        assert Scene.model_validate(timed.model_dump()).duration == 12
