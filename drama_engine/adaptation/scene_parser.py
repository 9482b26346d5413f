"""Storyboard text → ordered list of Scene records.

Two tiers:

* Block tier: a header pattern (``### Scene N: location``) captures each
  scene block up to the next header; independent field patterns pull the
  labeled values out of the block body.
* Line tier: only consulted when the block tier finds nothing.
  ``SceneLineParser`` walks the text line by line through three named states
  and maps bullet lines to fields by label containment.

Durations are left at 0; the duration estimator fills them in.  Zero scenes
from both tiers raises ``NoScenesParsedError``.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Optional

from drama_engine.adaptation.labels import (
    CHINESE_NUMERALS,
    FIELD_LABELS,
    SCENE_HEADER_PREFIX,
    SCENE_WORD,
    label_alternation,
)
from drama_engine.adaptation.models import AudioDesign, Scene, VisualElements
from drama_engine.errors import NoScenesParsedError

_OPEN_QUOTES = "\"“「『"
_CLOSE_QUOTES = "\"”」』"

_QUOTED_RE = re.compile(f"[{_OPEN_QUOTES}]([^{_CLOSE_QUOTES}\n]+)[{_CLOSE_QUOTES}]")
_SPEAKER_PREFIX_RE = re.compile(r"^[^:：]+[:：]\s*(.+)$")
# Inside quotes only a one- or two-word label counts as a speaker.
_QUOTED_SPEAKER_RE = re.compile(r"^[^:：\s]{1,20}(?: [^:：\s]+)?[:：]\s*(.+)$")
_EDGE_DEBRIS_RE = re.compile(f"^[\\s{_OPEN_QUOTES}]+|[\\s{_CLOSE_QUOTES}]+$")
_NEGATIONS = frozenset({"none", "n/a", "no", "无", "没有"})
_NEGATION_PHRASES = ("no dialogue", "no lines", "无对白", "无台词")

_SCENE_BLOCK_RE = re.compile(
    SCENE_HEADER_PREFIX + r"(\d+)[ \t]*[:：.\-]?[ \t]*([^\n]*)(?:\n|\Z)"
    r"(.*?)(?=" + SCENE_HEADER_PREFIX + r"\d+|\Z)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)

_LOOSE_HEADER_RE = re.compile(
    r"^(?:#{1,4}\s*)?(?:\*\*)?" + SCENE_WORD
    + r"\s*(?:\d+|[" + CHINESE_NUMERALS + r"]+)\s*[:：.\-]?\s*(.*)$",
    re.IGNORECASE,
)
_BULLET_RE = re.compile(r"^(?:-|•|\*(?!\*))\s*")
_LABELED_RE = re.compile(r"([^:：]*)[:：](.*)$")


def _field_re(field: str) -> re.Pattern:
    return re.compile(
        r"^[ \t]*(?:[-*•][ \t]*)?\**[【\[]?(?:" + label_alternation(field)
        + r")(?:[】\]]\**[ \t]*[:：]?|\**[ \t]*[:：])[ \t]*\**[ \t]*([^\n]*\S)",
        re.IGNORECASE | re.MULTILINE,
    )


_FIELD_RES: Dict[str, re.Pattern] = {field: _field_re(field) for field in FIELD_LABELS}


# ── Dialogue cleaning ─────────────────────────────────────────────────────────


def clean_dialogue(raw: str) -> str:
    """Reduce a dialogue field to the spoken words only.

    Quoted content wins, minus a short speaker label; otherwise a
    ``speaker:`` prefix is stripped; a bare negation ("none", "no dialogue")
    becomes empty.  Quote and whitespace debris is trimmed from both ends last.
    """
    raw = raw.strip()
    quoted = _QUOTED_RE.search(raw)
    if quoted:
        dialogue = quoted.group(1)
        speaker = _QUOTED_SPEAKER_RE.match(dialogue)
        if speaker:
            dialogue = speaker.group(1)
    else:
        speaker = _SPEAKER_PREFIX_RE.match(raw)
        if speaker:
            dialogue = speaker.group(1)
        elif _is_negation(raw):
            dialogue = ""
        else:
            dialogue = raw
    dialogue = _EDGE_DEBRIS_RE.sub("", dialogue).strip()
    if dialogue.startswith("-") and (":" in dialogue or "：" in dialogue):
        return ""
    return dialogue


def _is_negation(raw: str) -> bool:
    bare = raw.strip("()（）[]【】 .。").lower()
    if bare in _NEGATIONS:
        return True
    return any(phrase in bare for phrase in _NEGATION_PHRASES)


# ── Block tier ────────────────────────────────────────────────────────────────


def _clean_location(header: str, scene_number: int) -> str:
    location = header.strip().strip("【[]】*# ").strip()
    return location or f"Scene {scene_number}"


def _field(body: str, field: str) -> str:
    m = _FIELD_RES[field].search(body)
    return m.group(1).strip().rstrip("*").strip() if m else ""


def _scene_from_block(scene_number: int, header: str, body: str) -> Scene:
    shot = _field(body, "shot")
    composition = _field(body, "composition")
    emotional_tone = _field(body, "emotion")
    background_music = _field(body, "audio") or _field(body, "music")
    return Scene(
        scene_id=scene_number,
        location=_clean_location(header, scene_number),
        character_actions=_field(body, "action"),
        dialogue=clean_dialogue(_field(body, "dialogue")),
        composition=(f"[{shot}] " if shot else "") + composition,
        emotional_tone=emotional_tone,
        adaptation_note=_field(body, "adaptation_note"),
        scene_conflict=_field(body, "scene_conflict"),
        audio_design=AudioDesign(background_music=background_music, emotional_tone=emotional_tone),
        visual_elements=VisualElements(),
    )


def parse_scene_blocks(text: str) -> List[Scene]:
    return [
        _scene_from_block(int(m.group(1)), m.group(2), m.group(3))
        for m in _SCENE_BLOCK_RE.finditer(text)
    ]


# ── Line tier ─────────────────────────────────────────────────────────────────


class ParserState(str, Enum):
    SEEKING_HEADER = "seeking_header"  # no scene open yet
    IN_BLOCK = "in_block"  # header seen, no field assigned yet
    SEEKING_FIELD = "seeking_field"  # at least one field assigned


# Containment checks run in this order; the first label found in the bullet's
# label text decides the field.
_LINE_FIELD_ORDER = (
    ("adaptation_note", ("adaptation note", "改编说明")),
    ("scene_conflict", ("conflict", "核心冲突")),
    ("shot", ("shot", "景别")),
    ("composition", ("composition", "visual", "画面")),
    ("action", ("action", "动作")),
    ("dialogue", ("dialogue", "dialog", "台词", "对白")),
    ("emotion", ("emotion", "mood", "tone", "情绪")),
    ("music", ("music", "bgm", "音乐")),
    ("audio", ("audio", "sound", "sfx", "音效")),
)


class SceneLineParser:
    """Line-oriented fallback parser.

    Feed lines with :meth:`feed`; :meth:`finish` closes the open scene and
    returns everything collected.  Scene ids are assigned in order of
    appearance.
    """

    def __init__(self) -> None:
        self.state = ParserState.SEEKING_HEADER
        self.scenes: List[Scene] = []
        self._fields: Optional[Dict[str, str]] = None

    def feed(self, line: str) -> None:
        stripped = line.strip()
        header = _LOOSE_HEADER_RE.match(stripped)
        if header:
            self._close()
            self._fields = {"location": header.group(1).strip().strip("【[]】*# ")}
            self.state = ParserState.IN_BLOCK
            return
        if self.state is ParserState.SEEKING_HEADER:
            return
        bullet = _BULLET_RE.match(stripped)
        if not bullet or stripped.startswith("**"):
            return
        labeled = _LABELED_RE.match(stripped[bullet.end():])
        if not labeled:
            return
        label, value = labeled.group(1), labeled.group(2)
        field = _field_for_label(label)
        if field is None:
            return
        self._fields[field] = value.strip()
        self.state = ParserState.SEEKING_FIELD

    def finish(self) -> List[Scene]:
        self._close()
        self.state = ParserState.SEEKING_HEADER
        return self.scenes

    def _close(self) -> None:
        if self._fields is None:
            return
        f = self._fields
        scene_id = len(self.scenes) + 1
        shot = f.get("shot", "")
        emotional_tone = f.get("emotion", "")
        self.scenes.append(
            Scene(
                scene_id=scene_id,
                location=f.get("location") or f"Scene {scene_id}",
                character_actions=f.get("action", ""),
                dialogue=clean_dialogue(f.get("dialogue", "")),
                composition=(f"[{shot}] " if shot else "") + f.get("composition", ""),
                emotional_tone=emotional_tone,
                adaptation_note=f.get("adaptation_note", ""),
                scene_conflict=f.get("scene_conflict", ""),
                audio_design=AudioDesign(
                    background_music=f.get("audio") or f.get("music", ""),
                    emotional_tone=emotional_tone,
                ),
            )
        )
        self._fields = None


def _field_for_label(label: str) -> Optional[str]:
    lowered = label.lower()
    for field, needles in _LINE_FIELD_ORDER:
        if any(needle in lowered for needle in needles):
            return field
    return None


def parse_scene_lines(text: str) -> List[Scene]:
    parser = SceneLineParser()
    for line in text.split("\n"):
        parser.feed(line)
    return parser.finish()


# ── Public API ────────────────────────────────────────────────────────────────


def parse_scenes(text: str) -> List[Scene]:
    """Parse storyboard text, falling back to the line tier when needed.

    Raises:
        NoScenesParsedError: neither tier produced a scene.
    """
    scenes = parse_scene_blocks(text)
    if not scenes:
        scenes = parse_scene_lines(text)
    if not scenes:
        raise NoScenesParsedError("no scenes could be parsed from the storyboard")
    return scenes
