"""Prompt templates for every model call the pipeline makes.

The adaptation prompt asks for the ``===ANALYSIS===`` / ``===ADAPTED STORY===``
markers and the storyboard prompts ask for ``### Scene N: location`` blocks
with ``- Label:`` bullet fields; the section extractor and scene parser are
written against exactly these shapes and tolerate drift from them.
"""
from __future__ import annotations

from typing import List, Sequence

from drama_engine.adaptation.models import Episode, MainLine

ANALYSIS_MARKER = "===ANALYSIS==="
STORY_MARKER = "===ADAPTED STORY==="
STORYBOARD_MARKER = "===STORYBOARD==="
OPTIMIZED_MARKER = "===OPTIMIZED STORYBOARD==="

SYSTEM_PROMPT = """\
You are a script engine for short animated dramas. You turn a user's story
material into a production-ready short-drama adaptation.

Rules:
- Output the requested content directly.
- Never acknowledge the request ("Sure", "Here is...") and never explain what
  you are about to do.
- Follow the requested output format exactly."""

_STORYBOARD_FORMAT = """\
### Scene 1: [location - time of day]
- Shot type: [close-up / medium / full / wide / extreme wide]
- Camera: [static / push in / pull out / pan / tracking]
- Duration: [2-5 seconds]
- Composition: [character positions, posture, expressions, props, palette, lighting]
- Dialogue: "[Speaker: line]" (write "none" when nobody speaks)
- Action: [concrete, filmable action]
- Emotion: [keyword]
- Audio: [ambience / music cue]
- Transition: [cut / fade in / fade out]
- Core conflict: [one sentence: who against whom, over what]
- Adaptation note: [what this scene changes from the source and why]"""

_VISUAL_RULES = """\
Visual rules:
- Describe only what a camera can capture; no inner monologue, no abstractions.
- Expressions and actions must be concrete: clenched fists, narrowed eyes, a sudden stand.
- Never hold the same shot size for more than three scenes in a row.
- Describe a character's look (clothes, hair, age) on first appearance."""


def build_adaptation_prompt(content: str, story_type: str, episode_count: int, duration_per_episode: int) -> str:
    return f"""\
Adapt the following source material into a short-drama story.

[Source material]
{content}

[Parameters]
- Story type: {story_type}
- Episodes: {episode_count}
- Target length per episode: {duration_per_episode} seconds

[Craft principles]
1. Compress ruthlessly: one core payoff per episode, cut side plots.
2. Hook within the first three seconds; at least one reversal per episode.
3. Every line of dialogue must push the plot forward.
4. Each episode works on its own and ends on a hook.
5. Every episode completes a setback, response, payoff, reward cycle.

[Output format]
{ANALYSIS_MARKER}

[main line]
- Protagonist: [who they are, what makes them stand out]
- Core goal: [what the protagonist wants]
- Core conflict: [what stands in the way]
- Emotional anchor: [thrill / heartbreak / sweetness / curiosity]

[structure plan]
- Opening hook: [how the first seconds grab the viewer]
- Key reversal: [the twist]
- Climax: [the biggest release]

[strategy]
- Cut: [source content unrelated to the main line]
- Strengthen: [conflicts or suspense to push harder]
- Add: [elements the source lacks]

{STORY_MARKER}

[The full adapted story as continuous prose, like a novella. No timecodes, no
shot sizes, no "### Scene" headers, no labeled fields: the storyboard is
produced in a separate step.]

Start directly with {ANALYSIS_MARKER}."""


def build_storyboard_prompt(story: str, story_type: str, duration_per_episode: int) -> str:
    return f"""\
Turn the following story into a storyboard script that can be drawn directly.

[Story]
{story}

[Parameters]
- Story type: {story_type}
- Target length per episode: {duration_per_episode} seconds
- One shot lasts 2-5 seconds

[Storyboard format]
{_STORYBOARD_FORMAT}

[Episode rhythm]
- 0-3 s: hook with conflict, suspense or a strong visual.
- Up to 70%: build the conflict, include a payoff cycle.
- 70-90%: the episode's climax or reversal.
- Last 10%: a cliffhanger that makes the viewer want the next episode.

{_VISUAL_RULES}

Keep the story's important dialogue and label every line with its speaker.
Output the storyboard directly; the first line must be "### Scene 1"."""


def build_episode_count_prompt(content: str) -> str:
    return f"""\
You are a short-drama consultant. Recommend how many episodes the following
material should be adapted into.

[Material]
{content}

[Criteria]
1. Length: under 500 characters 1-2 episodes; 500-1500 2-4; 1500-3000 4-8;
   3000-6000 8-15; above 6000 15-30.
2. Chapters: each clear chapter or major section maps to 1-3 episodes.
3. Plot complexity: conflicts, turning points and climaxes.
4. Number of major characters.
5. Variety of settings.

[Output format] (exactly these two lines)
Recommended episodes: N
Analysis: <one-sentence rationale>"""


def _episode_context(episodes: Sequence[Episode]) -> str:
    lines: List[str] = []
    for index, episode in enumerate(episodes, start=1):
        lines.append(
            f"Episode {index}:\n"
            f"  - Core conflict: {episode.core_conflict or 'not set'}\n"
            f"  - Key events: {', '.join(episode.key_events) or 'not set'}\n"
            f"  - Opening hook: {episode.hook or 'not set'}"
        )
    return "\n".join(lines)


def build_optimize_prompt(
    story: str,
    story_type: str,
    main_line: MainLine,
    episodes: Sequence[Episode],
    issues: Sequence[str],
    directives: Sequence[str],
) -> str:
    numbered = "\n".join(f"{i}. {issue}" for i, issue in enumerate(issues, start=1))
    todo = "\n".join(f"- {d}" for d in directives)
    return f"""\
Revise the storyboard script below so it fixes the listed problems.

[Parameters]
- Story type: {story_type or 'urban drama'}

[Adapted story]
{story}

[Main line]
- Protagonist goal: {main_line.goal or 'not set'}
- Core conflict: {main_line.conflict or 'not set'}
- Description: {main_line.description or 'not set'}

[Per-episode conflicts and key events]
{_episode_context(episodes) or '(none)'}

[Problems to fix]
{numbered}

[Revision directives]
{todo}

[Storyboard format]
{_STORYBOARD_FORMAT}

[Preserve]
- Causal chains: never skip from cause to result.
- World-building details that explain why things happen.
- Setup scenes that build tension before a climax, even if they look slow.
- Supporting characters' lines that establish the world or the villain.

{_VISUAL_RULES}

Output the storyboard directly; the first line must be "### Scene 1".
Use as many scenes as the story needs."""


# ── Structured-response prompts ───────────────────────────────────────────────


INSIGHTS_SYSTEM_PROMPT = """\
You are a senior film director and screenwriter with deep short-drama
experience. Analyze the script and extract, for every episode, its core
dramatic conflict and its key events.

Principles:
1. A core conflict is dramatic: who against whom, over what, at what stake.
2. Key events are turning points that move the plot, not ordinary exchanges.
3. Rate conflict intensity from 1 to 10 by emotional tension, opposed
   interests and stakes.
4. Summarize every key event in one sentence.

Answer with JSON: {"episodes": [{"episodeNumber", "coreConflict",
"conflictIntensity", "keyEvents"}]}."""


def build_insights_prompt(episodes: Sequence[Episode]) -> str:
    blocks: List[str] = []
    for episode in episodes:
        scene_lines = []
        for index, scene in enumerate(episode.scenes, start=1):
            parts = []
            if scene.location:
                parts.append(f"Location: {scene.location}")
            if scene.dialogue:
                parts.append(f"Dialogue: {scene.dialogue[:100]}")
            if scene.character_actions:
                parts.append(f"Action: {scene.character_actions}")
            scene_lines.append(f"Scene {index}: {' | '.join(parts)}")
        blocks.append(
            f"## Episode {episode.episode_number}: {episode.title}\n"
            f"Opening hook: {episode.hook or 'none'}\n"
            + "\n".join(scene_lines)
            + f"\nCliffhanger: {episode.cliffhanger or 'none'}"
        )
    body = "\n\n---\n\n".join(blocks)
    return f"Extract the core conflict and key events of every episode:\n\n{body}"


SHOTS_SYSTEM_PROMPT = """\
You are a storyboard artist. Expand each scene into exactly one shot.

Allowed shot types: close-up, close, medium, full, wide.
Allowed transitions: cut, fade-in, fade-out, dissolve, wipe-in, wipe-out.
A shot lasts 2-8 seconds.

Answer with JSON: {"shots": [{"shotId", "sceneNumber", "shotNumber", "title",
"shotType", "duration", "transition", "sceneDescription", "characters",
"action", "dialogue", "emotion"}]}."""


def build_shots_prompt(episode: Episode, adapted_story: str) -> str:
    scene_lines = []
    for scene in episode.scenes:
        scene_lines.append(
            f"Scene {scene.scene_id}: {scene.location}\n"
            f"  Composition: {scene.composition}\n"
            f"  Action: {scene.character_actions}\n"
            f"  Dialogue: {scene.dialogue}\n"
            f"  Emotion: {scene.emotional_tone}\n"
            f"  Duration: {scene.duration}s"
        )
    return (
        f"[Story context]\n{adapted_story[:2000]}\n\n"
        f"[Episode {episode.episode_number} scenes: {len(episode.scenes)} total, "
        f"produce exactly {len(episode.scenes)} shots]\n"
        + "\n".join(scene_lines)
    )
