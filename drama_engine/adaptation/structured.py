"""Lenient parsing of JSON-formatted model responses.

Ladder:

1. strip markdown code fences and take the outermost ``{...}`` / ``[...]``;
2. ``json.loads``;
3. repair (control characters, single quotes, bare keys, trailing commas)
   and retry once;
4. salvage every requested top-level key whose value is individually
   parseable;
5. nothing salvageable -> ``UnparseableResponseError``.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Sequence

from drama_engine.errors import UnparseableResponseError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")
_STRING_TOKEN_RE = re.compile(r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\\n]|\\.)*'")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def extract_json_span(text: str) -> str:
    """Return the outermost object or array in *text*, or *text* itself."""
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return text
    start = min(starts)
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end <= start:
        return text[start:]
    return text[start:end + 1]


def _requote(token: str) -> str:
    if token.startswith('"'):
        return token
    inner = token[1:-1].replace('\\"', '"').replace('"', '\\"')
    return f'"{inner}"'


def _repair_structure(text: str) -> str:
    text = _BARE_KEY_RE.sub(r'\1"\2"\3', text)
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def repair_json(text: str) -> str:
    """Apply the common fixes for near-JSON model output.

    Bare keys and trailing commas are only fixed between string tokens, so
    apostrophes, commas and colons inside ``"..."`` values pass through intact.
    """
    text = _CONTROL_RE.sub(" ", text)
    out = []
    pos = 0
    for m in _STRING_TOKEN_RE.finditer(text):
        out.append(_repair_structure(text[pos:m.start()]))
        out.append(_requote(m.group(0)))
        pos = m.end()
    out.append(_repair_structure(text[pos:]))
    return "".join(out)


def _matching_bracket(text: str, start: int) -> Optional[int]:
    """Index of the bracket closing ``text[start]``, honoring JSON strings."""
    opener = text[start]
    closer = "]" if opener == "[" else "}"
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i
    return None


def salvage_keys(text: str, keys: Sequence[str]) -> Dict[str, Any]:
    """Parse each ``"key": [...]`` / ``"key": {...}`` value on its own."""
    salvaged: Dict[str, Any] = {}
    for key in keys:
        m = re.search(r'"' + re.escape(key) + r'"\s*:\s*([\[{])', text)
        if not m:
            continue
        end = _matching_bracket(text, m.start(1))
        if end is None:
            continue
        fragment = text[m.start(1):end + 1]
        try:
            salvaged[key] = json.loads(fragment)
        except json.JSONDecodeError:
            try:
                salvaged[key] = json.loads(repair_json(fragment))
            except json.JSONDecodeError:
                logger.debug("could not salvage %r", key)
    return salvaged


def parse_structured_response(text: str, salvage: Sequence[str] = ()) -> Any:
    """Parse a model's JSON answer, repairing and salvaging as needed.

    Args:
        text: raw completion text.
        salvage: top-level keys worth recovering individually when the whole
            document is beyond repair.

    Raises:
        UnparseableResponseError: nothing could be recovered.
    """
    stripped = strip_code_fences(text)
    candidate = extract_json_span(stripped)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    repaired = repair_json(candidate)
    try:
        data = json.loads(repaired)
    except json.JSONDecodeError as exc:
        logger.warning("structured response still invalid after repair: %s", exc)
    else:
        logger.warning("structured response needed repair before parsing")
        return data

    recovered = salvage_keys(stripped, salvage) or salvage_keys(repair_json(stripped), salvage)
    if recovered:
        logger.warning("partially salvaged structured response: %s", sorted(recovered))
        return recovered
    raise UnparseableResponseError("model returned malformed JSON that could not be repaired")
