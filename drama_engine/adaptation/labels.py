"""Field labels and line patterns shared by the section extractor and scene parser.

Model output arrives in English or Chinese depending on the source material,
so every label is matched in both.  Labels are regex fragments; longer
alternatives come first so ``emotional tone`` wins over ``tone``.
"""
from __future__ import annotations

import re
from typing import Dict, Tuple

FIELD_LABELS: Dict[str, Tuple[str, ...]] = {
    "shot": ("shot type", "shot size", "framing", "shot", "景别"),
    "composition": ("composition", "visual", "frame", "画面"),
    "action": ("character actions?", "actions?", "动作"),
    "dialogue": ("dialogue", "dialog", "台词", "对白"),
    "emotion": ("emotional tone", "emotion", "mood", "tone", "情绪"),
    "audio": ("audio", "sound effects?", "sfx", "sound", "音效"),
    "music": ("background music", "music", "bgm", "音乐"),
    "adaptation_note": ("adaptation note", "改编说明"),
    "scene_conflict": ("core conflict", "scene conflict", "核心冲突"),
}

# Labels that mark a line as storyboard formatting rather than narrative.
STORYBOARD_LINE_FIELDS = ("shot", "composition", "action", "dialogue", "emotion", "audio")

SCENE_WORD = r"(?:scene|场景)"
CHINESE_NUMERALS = "零一二三四五六七八九十百"

# "### Scene 3: Office" / "**场景3：办公室**" at the start of a line.
SCENE_HEADER_PREFIX = r"^[ \t]*(?:#{1,4}[ \t]*)?(?:\*\*)?" + SCENE_WORD + r"[ \t]*"

SCENE_HEADER_RE = re.compile(SCENE_HEADER_PREFIX + r"\d+", re.IGNORECASE | re.MULTILINE)

TIMECODE_LINE_RE = re.compile(r"^\*\*\d{2}:\d{2}")
SHOT_TAG_LINE_RE = re.compile(r"^\*\*\[.+\]\*\*$")


def label_alternation(field: str) -> str:
    return "|".join(FIELD_LABELS[field])


def _storyboard_line_re() -> re.Pattern:
    labels = "|".join(label_alternation(f) for f in STORYBOARD_LINE_FIELDS)
    return re.compile(r"^[-*•][ \t]*(?:" + labels + r")[ \t]*[:：]", re.IGNORECASE)


STORYBOARD_LINE_RE = _storyboard_line_re()


def is_storyboard_line(stripped: str) -> bool:
    """True for labeled field lines, timecodes and bold shot tags."""
    return bool(
        STORYBOARD_LINE_RE.match(stripped)
        or TIMECODE_LINE_RE.match(stripped)
        or SHOT_TAG_LINE_RE.match(stripped)
    )
