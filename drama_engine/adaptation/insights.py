"""Model-derived episode insights: core conflict, intensity, key events.

The heuristic values the segmenter derives are placeholders; one structured
model call replaces them with a director's reading of each episode.

Applying insights is idempotent and matches episodes by ``episode_number``,
never by position, so insights computed from an older revision land on
whatever episodes the document holds when they are applied.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from drama_engine.adaptation.models import Episode, ScriptDocument
from drama_engine.adaptation.prompts import INSIGHTS_SYSTEM_PROMPT, build_insights_prompt
from drama_engine.adaptation.structured import parse_structured_response
from drama_engine.llm import ChatClient, system, user

logger = logging.getLogger(__name__)

PENDING = "pending"
COMPLETED = "completed"

_INSIGHTS_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "episode_insights",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "episodes": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "episodeNumber": {"type": "integer"},
                            "coreConflict": {"type": "string"},
                            "conflictIntensity": {"type": "integer"},
                            "keyEvents": {"type": "array", "items": {"type": "string"}},
                        },
                        "required": ["episodeNumber", "coreConflict", "conflictIntensity", "keyEvents"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["episodes"],
            "additionalProperties": False,
        },
    },
}


class EpisodeInsight(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    episode_number: int
    core_conflict: str
    conflict_intensity: int  # model scale, 1..10
    key_events: List[str] = []

    def episode_intensity(self) -> int:
        """Map the model's 1..10 rating onto the episode's 1..5 scale."""
        return max(1, min(5, (self.conflict_intensity + 1) // 2))


def parse_insights(data: Any) -> List[EpisodeInsight]:
    items = data.get("episodes", []) if isinstance(data, dict) else data
    if not isinstance(items, list):
        return []
    insights: List[EpisodeInsight] = []
    for item in items:
        try:
            insights.append(EpisodeInsight.model_validate(item))
        except ValidationError as exc:
            logger.warning("skipping malformed episode insight: %s", exc.errors()[0]["msg"])
    return insights


def fetch_episode_insights(
    client: ChatClient,
    episodes: Sequence[Episode],
    api_key: Optional[str] = None,
) -> List[EpisodeInsight]:
    """One structured model call covering every episode.

    Raises:
        UpstreamError:            the model call failed.
        UnparseableResponseError: the answer could not be parsed or salvaged.
    """
    reply = client.complete(
        [system(INSIGHTS_SYSTEM_PROMPT), user(build_insights_prompt(episodes))],
        api_key=api_key,
        response_format=_INSIGHTS_RESPONSE_FORMAT,
    )
    return parse_insights(parse_structured_response(reply, salvage=("episodes",)))


def mark_insights_pending(document: ScriptDocument) -> ScriptDocument:
    episodes = [e.model_copy(update={"insight_status": PENDING}) for e in document.episodes]
    return document.model_copy(update={"episodes": episodes})


def apply_episode_insights(document: ScriptDocument, insights: Sequence[EpisodeInsight]) -> ScriptDocument:
    by_number = {insight.episode_number: insight for insight in insights}
    episodes: List[Episode] = []
    for episode in document.episodes:
        insight = by_number.get(episode.episode_number)
        update: Dict[str, Any] = {"insight_status": COMPLETED}
        if insight is not None:
            update.update(
                core_conflict=insight.core_conflict,
                conflict_intensity=insight.episode_intensity(),
                key_events=list(insight.key_events),
            )
        episodes.append(episode.model_copy(update=update))
    return document.model_copy(update={"episodes": episodes})


def refresh_episode_insights(
    client: ChatClient,
    document: ScriptDocument,
    api_key: Optional[str] = None,
) -> ScriptDocument:
    if not document.episodes:
        return document
    insights = fetch_episode_insights(client, document.episodes, api_key)
    logger.info("applying insights for %d of %d episodes", len(insights), len(document.episodes))
    return apply_episode_insights(document, insights)


def refresh_insights_in_store(store, doc_id: str, client: ChatClient, api_key: Optional[str] = None) -> ScriptDocument:
    """Refresh insights for a stored document without clobbering other writers.

    The model call runs outside the store's per-document lock; the merge is
    applied inside ``store.update`` to whatever revision is current by then.
    """
    snapshot = store.load(doc_id)
    if not snapshot.episodes:
        return snapshot
    insights = fetch_episode_insights(client, snapshot.episodes, api_key)
    return store.update(doc_id, lambda current: apply_episode_insights(current, insights))
