from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import yaml

from .client import SummaryServiceClient
from .config import ConfigError, effective_config, load_config, validate_config
from .models import Stage, StageStatus
from .orchestrator import PipelineOrchestrator
from .utils import configure_logging, json_dumps, log_event

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_USAGE = 2

_STATUS_MARKERS = {
    StageStatus.PENDING: "[ ]",
    StageStatus.PROCESSING: "[~]",
    StageStatus.COMPLETED: "[x]",
    StageStatus.ERRORED: "[!]",
}


def _format_stage(stage: Stage, target_language: str) -> str:
    line = f"{_STATUS_MARKERS[stage.status]} {stage.name.label(target_language)}"
    if stage.detail:
        line += f" - {stage.detail}"
    return line


def _progress_printer(target_language: str):
    seen: dict[str, tuple[StageStatus, str | None]] = {}

    def _print(orchestrator: PipelineOrchestrator) -> None:
        for stage in orchestrator.stages():
            state = (stage.status, stage.detail)
            if stage.status is StageStatus.PENDING or seen.get(stage.name.value) == state:
                continue
            seen[stage.name.value] = state
            print(_format_stage(stage, target_language), flush=True)

    return _print


def _cmd_summarize(args: argparse.Namespace, logger: logging.Logger) -> int:
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        log_event(logger, logging.ERROR, "config_error", error=str(exc))
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE

    client = SummaryServiceClient(config.service, logger=logger)
    orchestrator = PipelineOrchestrator(client, logger=logger)
    if not args.json:
        orchestrator.subscribe(_progress_printer(config.pipeline.target_language))

    rejection = asyncio.run(orchestrator.submit_text(args.url))
    if rejection is not None:
        print(rejection.message, file=sys.stderr)
        return EXIT_USAGE

    if args.json:
        print(json_dumps(orchestrator.snapshot(), indent=2))
        return EXIT_OK if orchestrator.error() is None else EXIT_RUN_FAILED

    error = orchestrator.error()
    if error is not None:
        print(f"Error: {error}", file=sys.stderr)
        return EXIT_RUN_FAILED

    result = orchestrator.result()
    print()
    print(result.title)
    if result.author:
        print(f"by {result.author}")
    print(f"{result.word_count} words - {result.blog_url}")
    print()
    print(result.summary_english)
    if args.translation:
        print()
        print(f"{config.pipeline.target_language} translation:")
        print(result.summary_urdu)
    return EXIT_OK


def _cmd_config_show(args: argparse.Namespace, logger: logging.Logger) -> int:
    try:
        cfg = effective_config(args.config)
    except ConfigError as exc:
        log_event(logger, logging.ERROR, "config_error", error=str(exc))
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE
    errors = validate_config(cfg)
    print(yaml.safe_dump(cfg, sort_keys=False).rstrip())
    if errors:
        for error in errors:
            print(f"invalid: {error}", file=sys.stderr)
        return EXIT_USAGE
    return EXIT_OK


def _cmd_serve(args: argparse.Namespace, logger: logging.Logger) -> int:
    import uvicorn

    log_event(logger, logging.INFO, "api_starting", host=args.host, port=args.port)
    uvicorn.run("blogdigest.api:app", host=args.host, port=args.port)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blogdigest",
        description="Summarize a blog post and translate the summary",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    summarize_parser = subparsers.add_parser("summarize", help="Summarize a blog URL")
    summarize_parser.add_argument("url", help="Blog post URL (http or https)")
    summarize_parser.add_argument("--config", help="Path to a YAML config file")
    summarize_parser.add_argument(
        "--json", action="store_true", help="Print the final run state as JSON"
    )
    summarize_parser.add_argument(
        "--translation", action="store_true", help="Also print the translated summary"
    )
    summarize_parser.set_defaults(func=_cmd_summarize)

    config_parser = subparsers.add_parser("config", help="Configuration commands")
    config_subparsers = config_parser.add_subparsers(dest="config_command", required=True)
    config_show = config_subparsers.add_parser("show", help="Print the effective config")
    config_show.add_argument("--config", help="Path to a YAML config file")
    config_show.set_defaults(func=_cmd_config_show)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=_cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = configure_logging("blogdigest", default_level="WARNING")
    return args.func(args, logger)


if __name__ == "__main__":
    raise SystemExit(main())
