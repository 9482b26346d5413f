"""Shared fixtures: an in-memory ChatClient double and small document builders."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

import pytest

from drama_engine.adaptation.models import (
    Episode,
    QualityMetrics,
    QualityStatus,
    Scene,
    ScriptDocument,
    ScriptMetadata,
)
from drama_engine.errors import UpstreamError


class ScriptedChatClient:
    """Returns canned replies in order and records every request.

    A reply that is an exception instance is raised instead of returned.
    """

    def __init__(self, replies: Sequence[Union[str, Exception]]) -> None:
        self._replies: List[Union[str, Exception]] = list(replies)
        self.calls: List[Dict[str, Any]] = []

    def complete(self, messages, *, api_key=None, response_format=None) -> str:
        self.calls.append(
            {"messages": list(messages), "api_key": api_key, "response_format": response_format}
        )
        if not self._replies:
            raise UpstreamError("no scripted reply left")
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def prompt(self, index: int = -1) -> str:
        """Text of the last message of call *index*."""
        return self.calls[index]["messages"][-1].content


@pytest.fixture
def scripted_client():
    return ScriptedChatClient


def make_scene(scene_id: int = 1, **overrides) -> Scene:
    fields = {"scene_id": scene_id, "location": f"Location {scene_id}", "duration": 5}
    fields.update(overrides)
    return Scene(**fields)


def make_metrics(**overrides) -> QualityMetrics:
    fields = dict(
        main_line_clarity=7,
        conflict_progression=7,
        pacing_control=7,
        dialogue_quality=7,
        visual_design=6,
        overall_score=6.8,
        quality_status=QualityStatus.REVISION_NEEDED,
    )
    fields.update(overrides)
    return QualityMetrics(**fields)


def make_document(
    episodes: Optional[List[Episode]] = None,
    requested: Optional[int] = None,
    **overrides,
) -> ScriptDocument:
    episodes = episodes or []
    fields = dict(
        metadata=ScriptMetadata(
            title="The Heir",
            story_concept="A disowned heir returns.",
            episode_count=len(episodes),
            requested_episodes=requested,
            total_duration=sum(e.duration for e in episodes),
            story_type="revenge",
            generation_timestamp="2026-01-01T00:00:00Z",
        ),
        adaptation_analysis="Protagonist: Lin",
        adapted_story="Lin returns to the city.",
        episodes=episodes,
        quality_metrics=make_metrics(),
        raw_content="raw",
    )
    fields.update(overrides)
    return ScriptDocument(**fields)


@pytest.fixture
def scene_factory():
    return make_scene


@pytest.fixture
def document_factory():
    return make_document


@pytest.fixture
def metrics_factory():
    return make_metrics
