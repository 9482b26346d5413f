"""Split one adaptation response into its analysis and story sections.

Strategies, in decreasing order of precision:

1. ``===analysis===`` / ``===adapted story===`` marker pair.
2. Bracketed analysis blocks (main line / structure / strategy).
3. Six ``key: value`` analysis lines (protagonist, goal, conflict, emotional
   anchor, hook, reversal).
4. Line scan for the story after a "story starts here" marker.
5. Fixed placeholder text.

``extract_sections`` never raises and never returns an empty field.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from drama_engine.adaptation.labels import SCENE_HEADER_RE, is_storyboard_line

ANALYSIS_PLACEHOLDER = "(Adaptation analysis unavailable; see the raw model output for details.)"
STORY_PLACEHOLDER = "(Adapted story unavailable; see the raw model output for details.)"

_ANALYSIS_MARKER = r"===\s*(?:adaptation analysis|analysis|改编分析)\s*==="
_STORY_MARKER = r"===\s*(?:adapted story|story|改编后的故事)\s*==="

_ANALYSIS_RE = re.compile(
    _ANALYSIS_MARKER + r"(.*?)(?=" + _STORY_MARKER + r")",
    re.IGNORECASE | re.DOTALL,
)
_STORY_RE = re.compile(
    _STORY_MARKER + r"(.*?)(?=^[ \t]*===[^=\n]+===|\Z)",
    re.IGNORECASE | re.DOTALL | re.MULTILINE,
)

_MAIN_LINE = r"主线分析|main line(?: analysis)?"
_STRUCTURE = r"结构规划|structure(?: plan)?"
_STRATEGY = r"优化策略|(?:optimi[sz]ation )?strategy"

_BRACKET_BLOCKS = (
    (_MAIN_LINE, (_STRUCTURE, _STRATEGY)),
    (_STRUCTURE, (_STRATEGY,)),
    (_STRATEGY, ()),
)

# (output label, accepted labels)
_KEY_FIELDS = (
    ("Protagonist", r"protagonist|主角"),
    ("Core goal", r"core goal|goal|核心目标"),
    ("Core conflict", r"core conflict|conflict|核心冲突"),
    ("Emotional anchor", r"emotional anchor|情绪锚点"),
    ("Opening hook", r"opening hook|hook|开篇钩子"),
    ("Key reversal", r"key reversal|reversal|关键反转"),
)

_STORY_START_RE = re.compile(r"adapted story|改编后的故事", re.IGNORECASE)


@dataclass(frozen=True)
class AdaptationSections:
    analysis: str
    story: str


def extract_sections(text: str) -> AdaptationSections:
    analysis = _analysis_from_markers(text)
    story = _story_from_markers(text)

    if not analysis:
        analysis = _analysis_from_bracket_blocks(text)
    if not analysis:
        analysis = _analysis_from_key_fields(text)
    if not story:
        story = _story_from_line_scan(text)

    return AdaptationSections(
        analysis=analysis or ANALYSIS_PLACEHOLDER,
        story=story or STORY_PLACEHOLDER,
    )


# ── Strategy 1: explicit markers ──────────────────────────────────────────────


def _analysis_from_markers(text: str) -> str:
    m = _ANALYSIS_RE.search(text)
    return m.group(1).strip() if m else ""


def _story_from_markers(text: str) -> str:
    m = _STORY_RE.search(text)
    if not m:
        return ""
    return strip_storyboard_formatting(m.group(1))


def strip_storyboard_formatting(raw_story: str) -> str:
    """Cut the story at the first scene header and drop labeled field lines.

    A narrative section must never carry storyboard fields; when the model
    leaks them into the story anyway, everything from the first scene header
    on is storyboard, and stray labeled lines before it are noise.
    """
    header = SCENE_HEADER_RE.search(raw_story)
    if header:
        raw_story = raw_story[: header.start()]
    kept = [line for line in raw_story.split("\n") if not is_storyboard_line(line.strip())]
    return "\n".join(kept).strip()


# ── Strategy 2: bracketed blocks ──────────────────────────────────────────────


def _analysis_from_bracket_blocks(text: str) -> str:
    parts: List[str] = []
    for label, followers in _BRACKET_BLOCKS:
        block = _bracket_block(text, label, followers)
        if block is not None:
            parts.append(block)
    return "\n\n".join(parts)


def _bracket_block(text: str, label: str, followers) -> Optional[str]:
    stops = "".join(r"【(?:" + f + r")】|" for f in followers)
    pattern = re.compile(
        r"【(" + label + r")】(.*?)(?=" + stops + r"===|\Z)",
        re.IGNORECASE | re.DOTALL,
    )
    m = pattern.search(text)
    if not m:
        return None
    return f"【{m.group(1)}】\n{m.group(2).strip()}"


# ── Strategy 3: key/value lines ───────────────────────────────────────────────


def _analysis_from_key_fields(text: str) -> str:
    fields: List[str] = []
    for output_label, labels in _KEY_FIELDS:
        m = re.search(
            r"^[ \t]*(?:[-*•][ \t]*)?(?:" + labels + r")[ \t]*[:：][ \t]*([^\n]+)",
            text,
            re.IGNORECASE | re.MULTILINE,
        )
        if m:
            fields.append(f"{output_label}: {m.group(1).strip()}")
    return "\n".join(fields)


# ── Strategy 4: line scan for the story ───────────────────────────────────────


def _story_from_line_scan(text: str) -> str:
    story_lines: List[str] = []
    in_story = False
    for line in text.split("\n"):
        stripped = line.strip()
        if _STORY_START_RE.search(stripped):
            in_story = True
            continue
        if in_story and SCENE_HEADER_RE.match(stripped):
            break
        if "===" in stripped or "【" in stripped:
            if in_story and story_lines:
                break
            continue
        if is_storyboard_line(stripped):
            continue
        if in_story and stripped:
            story_lines.append(line)
    return "\n".join(story_lines).strip()
