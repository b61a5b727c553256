# src/main.py — v2
"""CLI entry point — resume, profile, cache commands.

Usage:
    careerlens resume --resume FILE --job FILE [--owner ID]
    careerlens profile <url> [--owner ID] [--refresh]
    careerlens cache clear

Results are printed as JSON on stdout. Exit codes: 0 success, 1 error,
2 invalid input, 130 cancelled (Ctrl-C).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path

from careerlens.core.cancellation import CancellationToken
from careerlens.core.errors import (
    AnalysisCancelledError,
    CareerLensError,
    InputValidationError,
)
from careerlens.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_INPUT = 2
EXIT_CANCELLED = 130


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_ERROR

    try:
        from careerlens.config.settings import load_settings

        settings = load_settings()
    except (CareerLensError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(_run(args.func, args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_CANCELLED
    except AnalysisCancelledError as exc:
        logger.info("%s", exc)
        print(str(exc), file=sys.stderr)
        return EXIT_CANCELLED
    except InputValidationError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_INVALID_INPUT
    except CareerLensError as exc:
        logger.error("Analysis failed: %s", exc)
        print(str(exc), file=sys.stderr)
        return EXIT_ERROR
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_ERROR


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="careerlens",
        description=f"careerlens v{__version__} — Resume and LinkedIn profile scoring",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- resume ---
    p_resume = subparsers.add_parser(
        "resume", help="Score a resume against a job description",
    )
    p_resume.add_argument(
        "--resume", dest="resume_file", type=Path, required=True,
        help="Plain-text resume file",
    )
    p_resume.add_argument(
        "--job", dest="job_file", type=Path, required=True,
        help="Plain-text job description file",
    )
    p_resume.add_argument("--owner", default=None, help="User id to save the result for")
    p_resume.set_defaults(func=_cmd_resume)

    # --- profile ---
    p_profile = subparsers.add_parser(
        "profile", help="Analyze a LinkedIn profile",
    )
    p_profile.add_argument("url", help="LinkedIn profile URL")
    p_profile.add_argument("--owner", default=None, help="User id to save the result for")
    p_profile.add_argument(
        "--refresh", action="store_true",
        help="Ignore cached profile data and analysis",
    )
    p_profile.set_defaults(func=_cmd_profile)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Manage cached results")
    cache_sub = p_cache.add_subparsers(dest="cache_command")
    p_clear = cache_sub.add_parser("clear", help="Drop every cached result")
    p_clear.set_defaults(func=_cmd_cache_clear)

    return parser


async def _run(func, args: argparse.Namespace, settings) -> int:
    """Run a command with a token aborted on SIGINT."""
    from careerlens.api.facade import CareerLens

    token = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.abort)
    except (NotImplementedError, RuntimeError):
        pass  # Windows: KeyboardInterrupt is handled by main()

    try:
        async with CareerLens(settings) as lens:
            return await func(lens, args, token)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


async def _cmd_resume(lens, args: argparse.Namespace, token: CancellationToken) -> int:
    """Execute a resume analysis."""
    for path in (args.resume_file, args.job_file):
        if not path.is_file():
            raise InputValidationError(f"File not found: {path}")

    result = await lens.analyze_resume(
        args.resume_file.read_text(encoding="utf-8"),
        args.job_file.read_text(encoding="utf-8"),
        token=token,
        owner_id=args.owner,
        on_status=_print_status,
    )
    _print_result(result)
    return EXIT_OK


async def _cmd_profile(lens, args: argparse.Namespace, token: CancellationToken) -> int:
    """Execute a LinkedIn profile analysis."""
    result = await lens.analyze_linkedin_profile(
        args.url,
        token=token,
        owner_id=args.owner,
        on_status=_print_status,
        force_refresh=args.refresh,
    )
    _print_result(result)
    return EXIT_OK


async def _cmd_cache_clear(lens, args: argparse.Namespace, token: CancellationToken) -> int:
    """Clear every cache namespace."""
    removed = await lens.clear_caches()
    print(json.dumps({"cleared": removed}, indent=2))
    return EXIT_OK


def _print_status(status: str, message: str) -> None:
    print(f"[{status}] {message}", file=sys.stderr)


def _print_result(result) -> None:
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from careerlens.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
