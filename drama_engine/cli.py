"""drama-engine CLI entry point."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from drama_engine.config import Settings, get_settings
from drama_engine.errors import AdaptationError


def _make_client(settings: Settings):
    from drama_engine.llm import OpenAIChatClient  # noqa: PLC0415

    return OpenAIChatClient(settings)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drama-engine",
        description="Drama Engine — prose to multi-episode short-drama scripts",
    )
    parser.add_argument("--api-key", default=None, help="Per-call model credential")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    analyze = sub.add_parser("analyze-episodes", help="Recommend an episode count for a source text")
    analyze.add_argument("--content", required=True, metavar="story.txt", help="Source text file")

    generate = sub.add_parser("generate", help="Adapt a source text into a ScriptDocument")
    generate.add_argument("--content", required=True, metavar="story.txt", help="Source text file")
    generate.add_argument("--episodes", required=True, type=int, help="Requested episode count")
    generate.add_argument("--duration", required=True, type=int, help="Target seconds per episode")
    generate.add_argument("--story-type", required=True, help="Story type, e.g. 'revenge'")
    generate.add_argument("--output", required=True, metavar="script.json", help="Destination path")

    optimize = sub.add_parser("optimize", help="Regenerate a ScriptDocument's failing dimensions")
    optimize.add_argument("--document", required=True, metavar="script.json")
    optimize.add_argument("--content", required=True, metavar="story.txt", help="Original source text")
    optimize.add_argument("--duration", type=int, default=None, help="Target seconds per episode")
    optimize.add_argument("--output", required=True, metavar="script.json")

    score = sub.add_parser("score", help="Re-score a ScriptDocument and print its quality metrics")
    score.add_argument("--document", required=True, metavar="script.json")

    export = sub.add_parser("export", help="Render a ScriptDocument as json, text or markdown")
    export.add_argument("--document", required=True, metavar="script.json")
    export.add_argument("--format", required=True, choices=["json", "text", "markdown"])
    export.add_argument("--output", default=None, metavar="FILE", help="Write here instead of stdout")

    validate = sub.add_parser("validate-document", help="Validate a ScriptDocument JSON file")
    validate.add_argument("--document", required=True, metavar="script.json")

    insights = sub.add_parser("insights", help="Refresh per-episode conflicts and key events")
    insights.add_argument("--document", required=True, metavar="script.json")
    insights.add_argument("--output", required=True, metavar="script.json")

    shots = sub.add_parser("shots", help="Generate one storyboard shot per scene of an episode")
    shots.add_argument("--document", required=True, metavar="script.json")
    shots.add_argument("--episode", required=True, type=int, help="Episode number")
    shots.add_argument("--output", required=True, metavar="shots.json")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"ERROR: invalid settings: {exc.errors()[0]['msg']}")
        sys.exit(1)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "analyze-episodes": _analyze_episodes,
        "generate": _generate,
        "optimize": _optimize,
        "score": _score,
        "export": _export,
        "validate-document": _validate_document,
        "insights": _insights,
        "shots": _shots,
    }
    try:
        handlers[args.command](args, settings)
    except AdaptationError as exc:
        print(f"ERROR: {exc.cause}")
        sys.exit(1)
    sys.exit(0)


# ── Helpers ───────────────────────────────────────────────────────────────────


def _read_content(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        print(f"ERROR: cannot read content file: {exc}")
        sys.exit(1)


def _read_document(path: str):
    from drama_engine.schemas.document_v1 import load_document  # noqa: PLC0415

    try:
        return load_document(Path(path))
    except (OSError, ValueError) as exc:
        print(f"ERROR: invalid ScriptDocument — {exc}")
        sys.exit(1)


def _write_document(document, path: str) -> None:
    from drama_engine.schemas.document_v1 import dump_document  # noqa: PLC0415

    Path(path).write_text(dump_document(document) + "\n", encoding="utf-8")


def _summary(document) -> str:
    metrics = document.quality_metrics
    return (
        f"{len(document.episodes)} episodes, {document.metadata.total_duration}s, "
        f"score {metrics.overall_score} ({metrics.quality_status.value})"
    )


# ── Commands ──────────────────────────────────────────────────────────────────


def _analyze_episodes(args, settings: Settings) -> None:
    from drama_engine.adaptation.orchestrator import analyze_episode_count  # noqa: PLC0415

    content = _read_content(args.content)
    recommendation = analyze_episode_count(_make_client(settings), content, api_key=args.api_key)
    print(json.dumps(recommendation.model_dump(by_alias=True), ensure_ascii=False, indent=2))


def _generate(args, settings: Settings) -> None:
    from drama_engine.adaptation.orchestrator import generate_script  # noqa: PLC0415

    content = _read_content(args.content)
    if args.duration <= 0:
        print("ERROR: --duration must be positive")
        sys.exit(1)
    document = generate_script(
        _make_client(settings),
        content,
        episode_count=args.episodes,
        duration_per_episode=args.duration,
        story_type=args.story_type,
        api_key=args.api_key,
        duration_params=settings.duration_params(),
    )
    _write_document(document, args.output)
    print(f"OK: {_summary(document)} → {args.output}")


def _optimize(args, settings: Settings) -> None:
    from drama_engine.adaptation.optimizer import optimize_script  # noqa: PLC0415

    document = _read_document(args.document)
    content = _read_content(args.content)
    optimized = optimize_script(
        _make_client(settings),
        document,
        content,
        duration_per_episode=args.duration,
        api_key=args.api_key,
        duration_params=settings.duration_params(),
    )
    _write_document(optimized, args.output)
    if optimized is document:
        print(f"OK: nothing to optimize, {_summary(document)}")
    else:
        print(f"OK: {_summary(optimized)} → {args.output}")


def _score(args, settings: Settings) -> None:
    from drama_engine.adaptation.quality import evaluate_quality  # noqa: PLC0415

    metrics = evaluate_quality(_read_document(args.document))
    print(json.dumps(metrics.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))


def _export(args, settings: Settings) -> None:
    import jsonschema  # noqa: PLC0415

    from drama_engine.adaptation.export import export_document  # noqa: PLC0415

    document = _read_document(args.document)
    try:
        rendered = export_document(document, args.format)
    except jsonschema.ValidationError as exc:
        print(f"ERROR: invalid ScriptDocument — {exc.message}")
        sys.exit(1)
    if args.output:
        Path(args.output).write_text(rendered, encoding="utf-8")
        print(f"OK: exported {args.format} → {args.output}")
    else:
        sys.stdout.write(rendered)


def _validate_document(args, settings: Settings) -> None:
    import jsonschema  # noqa: PLC0415

    from drama_engine.contract_validate import validate_document_contract  # noqa: PLC0415
    from drama_engine.schemas.document_v1 import validate_document  # noqa: PLC0415

    try:
        data = json.loads(Path(args.document).read_text(encoding="utf-8"))
    except (OSError, ValueError):
        print("ERROR: invalid ScriptDocument")
        sys.exit(1)
    errors = validate_document(data) if isinstance(data, dict) else ["document is not an object"]
    if errors:
        print(f"ERROR: invalid ScriptDocument — {errors[0]}")
        sys.exit(1)
    try:
        validate_document_contract(data)
    except jsonschema.ValidationError as exc:
        print(f"ERROR: invalid ScriptDocument — {exc.message}")
        sys.exit(1)
    print("OK: ScriptDocument is valid")


def _insights(args, settings: Settings) -> None:
    from drama_engine.adaptation.insights import refresh_episode_insights  # noqa: PLC0415

    document = _read_document(args.document)
    refreshed = refresh_episode_insights(_make_client(settings), document, api_key=args.api_key)
    _write_document(refreshed, args.output)
    print(f"OK: insights refreshed for {len(refreshed.episodes)} episodes → {args.output}")


def _shots(args, settings: Settings) -> None:
    from drama_engine.adaptation.shots import generate_storyboard_shots  # noqa: PLC0415

    document = _read_document(args.document)
    episode = next((e for e in document.episodes if e.episode_number == args.episode), None)
    if episode is None:
        print(f"ERROR: no episode {args.episode} in document")
        sys.exit(1)
    shots = generate_storyboard_shots(
        _make_client(settings), episode, document.adapted_story, api_key=args.api_key
    )
    payload = [shot.model_dump(by_alias=True) for shot in shots]
    Path(args.output).write_text(
        json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    print(f"OK: {len(shots)} shots → {args.output}")


if __name__ == "__main__":
    main()
