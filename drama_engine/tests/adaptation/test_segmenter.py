"""Tests for greedy episode segmentation and episode field derivation."""
from __future__ import annotations

import math

import pytest

from drama_engine.adaptation.segmenter import (
    DEFAULT_CORE_CONFLICT,
    build_episode,
    conflict_intensity,
    core_conflict,
    group_scenes,
    key_events,
    segment_episodes,
    should_close,
)


# ── Split rule ─────────────────────────────────────────────────────────────────


class TestShouldClose:
    @pytest.mark.parametrize(
        "running, candidate, expected",
        [
            (15, 20, False),  # 20 is not > 1.2 * 20
            (16, 25, True),  # 0.8 rule
            (15, 30, False),  # running below 0.8 T
            (18, 25, True),
            (18, 24, False),
            (19, 27, True),
        ],
    )
    def test_rule_at_target_20(self, running, candidate, expected):
        assert should_close(running, candidate, 20) is expected


class TestSegmentEpisodes:
    def test_even_scenes_pack_to_target(self, scene_factory):
        scenes = [scene_factory(i, duration=5) for i in range(1, 13)]
        episodes = segment_episodes(scenes, 20)
        assert [e.duration for e in episodes] == [20, 20, 20]
        assert [e.episode_number for e in episodes] == [1, 2, 3]

    def test_long_trailing_scene_forms_last_episode(self, scene_factory):
        scenes = [scene_factory(i, duration=5) for i in range(1, 13)]
        scenes.append(scene_factory(13, duration=15))
        episodes = segment_episodes(scenes, 20)
        assert [e.duration for e in episodes] == [20, 20, 20, 15]

    def test_scene_ids_restart_per_episode(self, scene_factory):
        scenes = [scene_factory(i, duration=5) for i in range(1, 13)]
        for episode in segment_episodes(scenes, 20):
            assert [s.scene_id for s in episode.scenes] == [1, 2, 3, 4]

    def test_input_scenes_are_not_mutated(self, scene_factory):
        scenes = [scene_factory(i, duration=5) for i in range(1, 9)]
        segment_episodes(scenes, 10)
        assert [s.scene_id for s in scenes] == list(range(1, 9))

    def test_scene_order_and_total_preserved(self, scene_factory):
        scenes = [scene_factory(i, duration=d) for i, d in enumerate([3, 9, 4, 15, 2, 7, 6], 1)]
        episodes = segment_episodes(scenes, 12)
        flattened = [s.location for e in episodes for s in e.scenes]
        assert flattened == [s.location for s in scenes]
        assert sum(e.duration for e in episodes) == sum(s.duration for s in scenes)

    def test_oversized_scene_is_never_split(self, scene_factory):
        episodes = segment_episodes([scene_factory(1, duration=15)], 5)
        assert len(episodes) == 1
        assert episodes[0].duration == 15

    def test_no_scenes_no_episodes(self):
        assert segment_episodes([], 60) == []

    @pytest.mark.parametrize("target", [0, -10])
    def test_non_positive_target_rejected(self, scene_factory, target):
        with pytest.raises(ValueError):
            group_scenes([scene_factory()], target)

    @pytest.mark.parametrize("target", [8, 12, 20, 45])
    def test_closed_episodes_reach_lower_bound(self, scene_factory, target):
        durations = [3, 5, 2, 8, 4, 6, 2, 3, 7, 5, 4, 2]
        scenes = [scene_factory(i, duration=d) for i, d in enumerate(durations, 1)]
        groups = group_scenes(scenes, target)
        for group in groups[:-1]:
            total = sum(s.duration for s in group)
            assert total >= 0.8 * target
        assert len(groups) <= math.ceil(sum(durations) / (0.8 * target)) + 1


# ── Derived fields ─────────────────────────────────────────────────────────────


class TestConflictIntensity:
    @pytest.mark.parametrize(
        "total, expected",
        [
            (1, [1]),
            (2, [1, 5]),
            (3, [1, 3, 5]),
            (5, [1, 2, 3, 4, 5]),
            (9, [1, 1, 2, 2, 3, 3, 4, 4, 5]),
        ],
    )
    def test_rises_from_one_to_five(self, total, expected):
        assert [conflict_intensity(i, total) for i in range(total)] == expected


class TestEpisodeFields:
    def test_key_events_take_first_three_substantial_lines(self, scene_factory):
        lines = ["hi", "I am back", "Get out now", "Never again", "One more line"]
        scenes = [scene_factory(i, dialogue=d) for i, d in enumerate(lines, 1)]
        assert key_events(scenes) == ["I am back", "Get out now", "Never again"]

    def test_key_events_truncated(self, scene_factory):
        assert key_events([scene_factory(dialogue="y" * 70)]) == ["y" * 50]

    def test_core_conflict_prefers_scene_conflicts(self, scene_factory):
        scenes = [
            scene_factory(1, scene_conflict="Lin vs family"),
            scene_factory(2, scene_conflict="Lin vs family"),
            scene_factory(3, scene_conflict="Mei vs Lin"),
            scene_factory(4, scene_conflict="Third conflict"),
        ]
        assert core_conflict(scenes) == "Lin vs family; Mei vs Lin"

    def test_core_conflict_truncates_long_conflicts(self, scene_factory):
        assert core_conflict([scene_factory(scene_conflict="x" * 100)]) == "x" * 80 + "..."

    def test_core_conflict_falls_back_to_notes(self, scene_factory):
        scenes = [scene_factory(adaptation_note="Moved opening to banquet", dialogue="Get out now")]
        assert core_conflict(scenes) == "Moved opening to banquet"

    def test_core_conflict_falls_back_to_dialogue(self, scene_factory):
        assert core_conflict([scene_factory(dialogue="I am back home now")]) == "I am back home now"
        assert core_conflict([scene_factory(dialogue="z" * 60)]) == "z" * 50 + "..."

    def test_core_conflict_falls_back_to_locations(self, scene_factory):
        scenes = [scene_factory(i, location=loc) for i, loc in enumerate("ABCD", 1)]
        assert core_conflict(scenes) == "Scene flow: A → B → C"

    def test_core_conflict_default(self, scene_factory):
        assert core_conflict([scene_factory(location="")]) == DEFAULT_CORE_CONFLICT

    def test_build_episode(self, scene_factory):
        scenes = [
            scene_factory(1, location="Hall", dialogue="You came back?", duration=4),
            scene_factory(2, location="Roof", dialogue="Not for you.", duration=6),
        ]
        episode = build_episode(2, scenes, index=1, total=3)
        assert episode.title == "Episode 2"
        assert episode.duration == 10
        assert episode.conflict_intensity == 3
        assert episode.narrative_summary == "Hall → Roof"
        assert episode.hook == "You came back?"
        assert episode.cliffhanger == "Not for you."
        assert episode.insight_status is None
