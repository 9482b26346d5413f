"""Heuristic quality rubric for an assembled ScriptDocument.

Five dimension scores start from fixed seeds and are nudged by ten structural
checks, each comparing an observed ratio against a threshold.  Scores are
clamped to [1, 10]; the overall score is their mean rounded to one decimal.

With zero episodes every ratio check compares 0 >= 0 and passes, while the
average-scenes and intensity-progression checks fail.  That outcome is
intentional and pinned by tests.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from drama_engine.adaptation.models import Episode, QualityMetrics, QualityStatus, ScriptDocument

PASS_THRESHOLD = 8.0
FAIL_THRESHOLD = 6.0

# Markers of a "win" beat: the protagonist confronts someone, or the scene is
# tagged with a catharsis emotion.
PAYOFF_DIALOGUE_RE = re.compile(r"你|我|\byou\b")
PAYOFF_TONE_MARKERS = (
    "爽", "震惊", "打脸", "triumph", "shock", "satisf", "vindicat", "payoff",
)
MAIN_LINE_KEYWORDS = (
    "他", "她", "主角", "目标", "任务", "危机", "敌人", "反派", "秘密", "真相",
    "protagonist", "goal", "mission", "crisis", "enemy", "villain", "secret", "truth",
)

ADVICE_FAIL = (
    "Score is low: enrich the source story with more detail, then regenerate."
)
ADVICE_REVISION = (
    "Score is moderate: refine the source material and regenerate, or run optimize."
)


@dataclass
class _Scorecard:
    main_line: int = 7
    conflict: int = 7
    pacing: int = 7
    dialogue: int = 7
    visual: int = 6
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


def _clamp(score: int) -> int:
    return max(1, min(10, score))


def status_for(overall: float) -> QualityStatus:
    if overall >= PASS_THRESHOLD:
        return QualityStatus.PASS
    if overall < FAIL_THRESHOLD:
        return QualityStatus.FAIL
    return QualityStatus.REVISION_NEEDED


def _has_payoff(episode: Episode) -> bool:
    if len(episode.core_conflict) > 5:
        return True
    for scene in episode.scenes:
        dialogue = scene.dialogue.lower()
        tone = scene.emotional_tone.lower()
        if PAYOFF_DIALOGUE_RE.search(dialogue):
            return True
        if any(m in tone for m in PAYOFF_TONE_MARKERS):
            return True
    return False


def _cliffhanger_on_main_line(episode: Episode) -> bool:
    cliffhanger = episode.cliffhanger
    if len(cliffhanger) < 5:
        return False
    lowered = cliffhanger.lower()
    return any(kw in lowered for kw in MAIN_LINE_KEYWORDS) or len(cliffhanger) > 10


# ── Checks ────────────────────────────────────────────────────────────────────


def _check_completeness(card: _Scorecard, document: ScriptDocument) -> None:
    expected = document.metadata.requested_episodes or document.metadata.episode_count
    actual = len(document.episodes)
    if actual >= expected:
        card.main_line += 1
    else:
        card.main_line -= 1
        card.issues.append(f"Incomplete episode count: expected {expected}, got {actual}")
        card.suggestions.append(
            "Tip: add more story detail to the source so every requested episode has material."
        )


def _check_scene_density(card: _Scorecard, episodes: Sequence[Episode]) -> None:
    avg = sum(len(e.scenes) for e in episodes) / max(len(episodes), 1)
    if avg >= 3:
        card.pacing += 1
        card.visual += 1
    elif avg < 2:
        card.pacing -= 1
        card.issues.append(f"Too few scenes: {avg:.1f} per episode on average")
        card.suggestions.append(
            "Tip: describe more changes of setting, e.g. indoors, outdoors, a specific landmark."
        )


def _check_progression(card: _Scorecard, episodes: Sequence[Episode]) -> None:
    levels = [e.conflict_intensity for e in episodes]
    rising = len(levels) > 1 and levels[-1] > levels[0]
    monotone = all(b >= a for a, b in zip(levels, levels[1:]))
    if rising and monotone:
        card.conflict += 2
    elif rising:
        card.conflict += 1
    else:
        card.issues.append("Conflict intensity does not escalate across episodes")
        card.suggestions.append(
            "Tip: escalate the crisis step by step, from a small friction to an open clash."
        )


def _check_hooks(card: _Scorecard, episodes: Sequence[Episode]) -> None:
    total = len(episodes)
    hooks = sum(1 for e in episodes if len(e.hook) > 5)
    cliffhangers = sum(1 for e in episodes if len(e.cliffhanger) > 5)

    if hooks >= total * 0.8:
        card.dialogue += 1
    else:
        card.issues.append(f"Weak opening hooks: only {hooks}/{total} episodes open with a hook")
        card.suggestions.append(
            "Tip: open every episode on a question, e.g. \"In three days, he will be dead.\""
        )

    if cliffhangers >= total * 0.7:
        card.pacing += 1
    else:
        card.issues.append(f"Weak cliffhangers: only {cliffhangers}/{total} episodes end on one")
        card.suggestions.append("Tip: end every episode on an open question or a hinted reversal.")


def _check_dialogue(card: _Scorecard, episodes: Sequence[Episode]) -> None:
    scenes = [s for e in episodes for s in e.scenes]
    with_dialogue = sum(1 for s in scenes if len(s.dialogue) > 3)
    if with_dialogue >= len(scenes) * 0.6:
        card.dialogue += 1
    elif with_dialogue < len(scenes) * 0.3:
        card.dialogue -= 1
        card.issues.append("Too little dialogue")
        card.suggestions.append("Tip: add spoken exchanges that show the characters' personalities.")


def _check_composition(card: _Scorecard, episodes: Sequence[Episode]) -> None:
    scenes = [s for e in episodes for s in e.scenes]
    with_visual = sum(1 for s in scenes if len(s.composition) > 5)
    if with_visual >= len(scenes) * 0.5:
        card.visual += 1
    else:
        card.suggestions.append("Tip: describe the frame: palette, composition, lighting.")


def _check_key_events(card: _Scorecard, episodes: Sequence[Episode]) -> None:
    with_events = sum(1 for e in episodes if len(e.key_events) >= 2)
    if with_events >= len(episodes) * 0.7:
        card.main_line += 1
    else:
        card.suggestions.append("Tip: give every episode two or three clear turning points.")


def _check_payoff(card: _Scorecard, episodes: Sequence[Episode]) -> None:
    total = len(episodes)
    wins = sum(1 for e in episodes if _has_payoff(e))
    if wins >= total * 0.8:
        card.pacing += 1
        card.suggestions.append("Every episode has a payoff beat.")
    else:
        card.issues.append(f"Missing payoff beats: only {wins}/{total} episodes deliver a clear win")
        card.suggestions.append(
            "Tip: give every episode a full setback, response, payoff, reward cycle."
        )


def _check_main_line_cliffhangers(card: _Scorecard, episodes: Sequence[Episode]) -> None:
    related = sum(1 for e in episodes if _cliffhanger_on_main_line(e))
    if related >= len(episodes) * 0.6:
        card.main_line += 1
    elif len(episodes) > 1:
        card.suggestions.append(
            "Tip: tie each cliffhanger to the main line, e.g. \"Will the truth come out?\""
        )


# ── Public API ────────────────────────────────────────────────────────────────


def evaluate_quality(document: ScriptDocument) -> QualityMetrics:
    """Score *document*; pure, deterministic, never raises."""
    card = _Scorecard()
    episodes = document.episodes

    _check_completeness(card, document)
    _check_scene_density(card, episodes)
    _check_progression(card, episodes)
    _check_hooks(card, episodes)
    _check_dialogue(card, episodes)
    _check_composition(card, episodes)
    _check_key_events(card, episodes)
    _check_payoff(card, episodes)
    _check_main_line_cliffhangers(card, episodes)

    scores = [_clamp(s) for s in (card.main_line, card.conflict, card.pacing, card.dialogue, card.visual)]
    overall = round(sum(scores) / len(scores), 1)
    status = status_for(overall)

    suggestions = list(card.suggestions)
    if status is QualityStatus.FAIL:
        suggestions.insert(0, ADVICE_FAIL)
    elif status is QualityStatus.REVISION_NEEDED:
        suggestions.insert(0, ADVICE_REVISION)

    return QualityMetrics(
        main_line_clarity=scores[0],
        conflict_progression=scores[1],
        pacing_control=scores[2],
        dialogue_quality=scores[3],
        visual_design=scores[4],
        overall_score=overall,
        quality_status=status,
        issues=card.issues,
        suggestions=suggestions,
    )
