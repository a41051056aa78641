"""
File: cli.py
Purpose: `ci-orchestrator` command line -- `select` prints the services a change affects, `run`
    selects and then builds/scans/pushes them (locally or via Jenkins), `serve` starts the API.
When Used: From a Jenkins `sh` step or a developer shell, e.g.
    ci-orchestrator select --mode auto --base-ref main
    ci-orchestrator run --mode "$SERVICE" --backend jenkins
Why Created: CI steps need exit codes and plain-text output rather than an HTTP API. This keeps
    the "no work" outcome (exit 0, nothing printed on stdout) distinct from errors (exit 2) and
    stage failures (exit 1).
"""
import argparse
import asyncio
import os
import sys
from typing import List, Optional

from ci_orchestrator.config import settings
from ci_orchestrator.errors import CatalogError, InvalidServiceError
from ci_orchestrator.logging_config import configure_logging
from ci_orchestrator.models.schemas import RunBackend, SelectionResult
from ci_orchestrator.services.pipeline_runner import create_runner
from ci_orchestrator.services.service_selector import service_selection

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

NO_WORK_MESSAGE = "no services to build"


def _read_paths(source: str) -> List[str]:
    if source == "-":
        lines = sys.stdin.read().splitlines()
    else:
        with open(source, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    return [line.strip() for line in lines if line.strip()]


def _changed_paths(args: argparse.Namespace) -> Optional[List[str]]:
    """Explicit paths from --changed-path/--changed-paths-from, or None to ask git."""
    if args.changed_path is None and args.changed_paths_from is None:
        return None
    paths = list(args.changed_path or [])
    if args.changed_paths_from:
        paths.extend(_read_paths(args.changed_paths_from))
    return paths


def _base_ref(args: argparse.Namespace) -> Optional[str]:
    # CHANGE_TARGET is set by Jenkins multibranch jobs for pull requests
    return args.base_ref or os.environ.get("CHANGE_TARGET") or None


async def _select(args: argparse.Namespace) -> SelectionResult:
    return await service_selection.select(
        args.mode,
        base_ref=_base_ref(args),
        changed_paths=_changed_paths(args),
    )


def cmd_select(args: argparse.Namespace) -> int:
    result = asyncio.run(_select(args))
    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        for service in result.services:
            print(service)
    if result.no_work:
        print(NO_WORK_MESSAGE, file=sys.stderr)
    return EXIT_OK


async def _select_and_run(args: argparse.Namespace):
    selection = await _select(args)
    runner = create_runner(
        RunBackend(args.backend),
        settings=service_selection.settings,
        dry_run=True if args.dry_run else None,
    )
    return selection, await runner.run(selection.services)


def cmd_run(args: argparse.Namespace) -> int:
    selection, result = asyncio.run(_select_and_run(args))
    if args.json:
        print(result.model_dump_json(indent=2))
    elif selection.no_work:
        print(NO_WORK_MESSAGE, file=sys.stderr)
    else:
        for service_result in result.services:
            status = "ok" if service_result.success else "FAILED"
            print(f"{service_result.service}: {status}")
        if result.error:
            print(f"error: {result.error}", file=sys.stderr)
    return EXIT_OK if result.success else EXIT_FAILED


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn
    uvicorn.run("ci_orchestrator.main:app", host=args.host, port=args.port)
    return EXIT_OK


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--mode", required=True, help="all | none | auto | <service name>")
    parser.add_argument("--base-ref", help="Branch or commit to diff against in auto mode "
                                           "(default: $CHANGE_TARGET, then the configured base_ref)")
    parser.add_argument("--changed-path", action="append", metavar="PATH",
                        help="Changed path to use instead of git diff (repeatable)")
    parser.add_argument("--changed-paths-from", metavar="FILE",
                        help="Read changed paths from FILE, one per line ('-' for stdin)")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ci-orchestrator",
        description="Select which services a change affects and run their build/scan/push pipeline.",
    )
    parser.add_argument("--log-level", default=None, help=f"Log level (default: {settings.log_level})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    select_parser = subparsers.add_parser("select", help="Print the selected services")
    _add_selection_arguments(select_parser)
    select_parser.set_defaults(func=cmd_select)

    run_parser = subparsers.add_parser("run", help="Select services and run the pipeline for each")
    _add_selection_arguments(run_parser)
    run_parser.add_argument("--backend", choices=[b.value for b in RunBackend], default=RunBackend.LOCAL.value)
    run_parser.add_argument("--dry-run", action="store_true", help="Log commands without executing them")
    run_parser.set_defaults(func=cmd_run)

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8003)
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level or settings.log_level, settings.log_json)

    try:
        return args.func(args)
    except (InvalidServiceError, CatalogError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
