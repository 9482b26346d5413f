"""Render a ScriptDocument as json, plain text or markdown."""
from __future__ import annotations

from typing import Callable, Dict, List

from drama_engine.adaptation.models import ScriptDocument

EXPORT_FORMATS = ("json", "text", "markdown")


def _to_json(document: ScriptDocument) -> str:
    from drama_engine.contract_validate import validate_document_model  # noqa: PLC0415
    from drama_engine.schemas.document_v1 import dump_document  # noqa: PLC0415

    # Raises jsonschema.ValidationError before anything is returned.
    validate_document_model(document)
    return dump_document(document)


def _to_text(document: ScriptDocument) -> str:
    return (
        f"{document.metadata.title}\n\n"
        f"Adaptation analysis:\n{document.adaptation_analysis}\n\n"
        f"Adapted story:\n{document.adapted_story}\n\n"
    )


def _to_markdown(document: ScriptDocument) -> str:
    meta = document.metadata
    out: List[str] = [
        f"# {meta.title}\n\n",
        f"> {meta.story_concept}\n\n",
        f"**Type**: {meta.story_type}\n\n",
        f"**Episodes**: {meta.episode_count} | "
        f"**Quality score**: {document.quality_metrics.overall_score}/10\n\n",
        "---\n\n",
    ]

    for episode in document.episodes:
        out.append(f"## Episode {episode.episode_number}: {episode.title}\n\n")
        out.append(f"**Conflict intensity**: {'★' * episode.conflict_intensity}\n\n")
        if episode.hook:
            out.append(f"**Opening hook**: {episode.hook}\n\n")
        if episode.core_conflict:
            out.append(f"**Core conflict**: {episode.core_conflict}\n\n")
        if episode.scenes:
            out.append("### Scenes\n\n")
            for scene in episode.scenes:
                out.append(f"- **{scene.location}** ({scene.duration}s)\n")
                if scene.character_actions:
                    out.append(f"  {scene.character_actions}\n")
            out.append("\n")
        if episode.cliffhanger:
            out.append(f"**Cliffhanger**: {episode.cliffhanger}\n\n")
        out.append("---\n\n")

    if document.raw_content:
        out.append("## Raw model output\n\n")
        out.append(f"```\n{document.raw_content}\n```\n")
    return "".join(out)


_RENDERERS: Dict[str, Callable[[ScriptDocument], str]] = {
    "json": _to_json,
    "text": _to_text,
    "markdown": _to_markdown,
}


def export_document(document: ScriptDocument, fmt: str) -> str:
    """Render *document* in *fmt*.

    Raises:
        ValueError: *fmt* is not one of ``EXPORT_FORMATS``.
        jsonschema.ValidationError: json output would break the contract.
    """
    renderer = _RENDERERS.get(fmt)
    if renderer is None:
        raise ValueError(f"unknown export format {fmt!r}; expected one of {', '.join(EXPORT_FORMATS)}")
    return renderer(document)
