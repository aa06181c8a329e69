from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from log_doctor.core.config import ConfigError, PromptConfig, build_parsers, load_config
from log_doctor.core.diagnose import DiagnosisConfig, DiagnosisHandler, resolve_diagnosis_config
from log_doctor.core.monitor import DEFAULT_BUFFER_SIZE, DEFAULT_BUNDLING_TIMEOUT, LogMonitor
from log_doctor.core.parsing import NoParserMatchedError, ParserError
from log_doctor.core.source import tail_lines

logger = logging.getLogger("log_doctor")


def _positive_int(s: str) -> int:
    try:
        value = int(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected an integer, got {s!r}") from e
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def _configure_logging(debug: bool) -> None:
    if debug:
        level = logging.DEBUG
    else:
        level_name = os.getenv("LOG_DOCTOR_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Watch a log file and diagnose errors with an LLM.")
    p.add_argument("--logfile", required=True, help="Path to the log file to monitor")
    p.add_argument("--outdir", required=True, help="Directory for diagnosis files (created if missing)")
    p.add_argument("--configfile", required=True, help="Path to the YAML parser configuration")
    p.add_argument("--debug", action=argparse.BooleanOptionalAction, default=False, help="Debug logging")
    p.add_argument(
        "--bundling-timeout-seconds",
        type=float,
        default=DEFAULT_BUNDLING_TIMEOUT,
        help="Seconds to keep collecting context after a trigger (default: 5)",
    )
    p.add_argument(
        "--buffer-size",
        type=_positive_int,
        default=DEFAULT_BUFFER_SIZE,
        help="Max log entries kept as context (default: 100)",
    )
    p.add_argument(
        "--max-tokens",
        type=_positive_int,
        default=8000,
        help="Max tokens per diagnosis request, prompts included (default: 8000)",
    )
    p.add_argument("--model", default=None, help="Gemini model used for diagnosis")
    p.add_argument("--no-follow", action="store_true", help="Stop at end of file instead of tailing")
    return p


async def _run(args: argparse.Namespace) -> None:
    cfg = load_config(args.configfile)
    parsers = build_parsers(cfg)
    prompts = PromptConfig.from_config(cfg)

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    diag_cfg = resolve_diagnosis_config(DiagnosisConfig(output_dir=outdir))
    if args.model:
        diag_cfg = replace(diag_cfg, model=args.model)
    handler = DiagnosisHandler(args.logfile, prompts=prompts, cfg=diag_cfg)

    monitor = LogMonitor(
        tail_lines(args.logfile, follow=not args.no_follow),
        parsers,
        handler,
        buffer_size=args.buffer_size,
        token_budget=prompts.token_budget(args.max_tokens),
        bundling_timeout=args.bundling_timeout_seconds,
    )
    logger.info("Monitoring %s (follow=%s)", args.logfile, not args.no_follow)
    try:
        await monitor.run()
    finally:
        await monitor.join()


def main(argv: Sequence[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    _configure_logging(args.debug)

    if not (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")):
        print("Error: GEMINI_API_KEY (or GOOGLE_API_KEY) is required", file=sys.stderr)
        raise SystemExit(2)
    if args.bundling_timeout_seconds < 0:
        print("Error: --bundling-timeout-seconds must be >= 0", file=sys.stderr)
        raise SystemExit(2)

    try:
        asyncio.run(_run(args))
    except NoParserMatchedError as e:
        logger.error("Error parsing log entry: %s", e)
        raise SystemExit(1)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except (ConfigError, ParserError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)
    except KeyboardInterrupt:
        raise SystemExit(130)


if __name__ == "__main__":
    main()
