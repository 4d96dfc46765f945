"""Command line interface for distributor package."""
from __future__ import annotations

import argparse
import asyncio
import logging
import math
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from rich.logging import RichHandler

from . import __version__
from .cli_progress import (
    BatchProgressDisplay,
    render_configuration_summary,
    render_result,
    render_status,
    render_validation_table,
)
from .errors import PreconditionError
from .models import DistributionConfig, DistributionRequest, ValidatedRow
from .orchestrator import DistributionOrchestrator, RunMode
from .report import write_report
from .sheet import read_csv
from .validation import validate_reason, validate_rows, valid_rows


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_STOPPED = 130


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug or --log-level is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    if silent or (not debug and not log_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    """Drop one pair of matching quotes around a .env value."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    """Export KEY=VALUE lines (DISTRIBUTOR_API_URL, ...) into the process environment."""
    if not path.is_file():
        reason = "is not a file" if path.exists() else "does not exist"
        raise CLIError(f"distributor settings file {path} {reason} (check --env-file)")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"cannot read distributor settings from {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = (part.strip() for part in line.split("=", 1))
        if key and (override or key not in os.environ):
            os.environ[key] = _strip_optional_quotes(value)


def _resolve_default_env_file() -> Optional[Path]:
    """Use ./.env when present and no --env-file was given."""
    candidate = Path.cwd() / ".env"
    return candidate if candidate.is_file() else None


def _parse_amount(value: str) -> float:
    try:
        amount = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"token amount must be a number: {value!r}")
    if not math.isfinite(amount):
        raise argparse.ArgumentTypeError(f"token amount must be finite: {value!r}")
    return amount


def _build_config(args: argparse.Namespace) -> DistributionConfig:
    try:
        return DistributionConfig.from_env(
            api_url=args.api_url,
            admin_id=args.admin_id,
            item_delay=getattr(args, "delay", None),
        )
    except ValueError as exc:
        raise CLIError(f"invalid configuration: {exc}") from exc


def _require_api_url(config: DistributionConfig) -> None:
    if not config.api_url:
        raise CLIError("DISTRIBUTOR_API_URL environment variable is not set (or pass --api-url)")


def _install_signal_handlers(process) -> List[int]:
    """Ctrl+C stops at the next item boundary, SIGUSR1 toggles pause. Returns installed signals."""
    loop = asyncio.get_running_loop()
    installed = []
    handlers = [(signal.SIGINT, process.stop)]
    sigusr1 = getattr(signal, "SIGUSR1", None)
    if sigusr1 is not None:
        handlers.append((sigusr1, process.toggle_pause))

    for signum, callback in handlers:
        try:
            loop.add_signal_handler(signum, callback)
        except (NotImplementedError, RuntimeError):
            continue
        installed.append(signum)
    return installed


def _remove_signal_handlers(signals: Sequence[int]) -> None:
    loop = asyncio.get_running_loop()
    for signum in signals:
        loop.remove_signal_handler(signum)


async def _run_send(
    config: DistributionConfig,
    address: str,
    amount: float,
    reason: str,
    wait_for_confirmation: bool,
) -> int:
    _require_api_url(config)
    request = DistributionRequest(address, amount)

    async with DistributionOrchestrator(config=config) as orchestrator:
        try:
            message = "Waiting for confirmation..." if wait_for_confirmation else "Submitting..."
            with render_status(message):
                result = await orchestrator.distribute(
                    request, reason, wait_for_confirmation=wait_for_confirmation
                )
        except PreconditionError as exc:
            raise CLIError(str(exc)) from exc

    render_result(result)
    return EXIT_OK if result.success else EXIT_FAILED


async def _run_batch(
    config: DistributionConfig,
    rows: List[ValidatedRow],
    reason: str,
    report_path: Optional[Path],
) -> int:
    _require_api_url(config)

    async with DistributionOrchestrator(config=config) as orchestrator:
        try:
            process = orchestrator.distribute_batch(rows, reason)
        except PreconditionError as exc:
            raise CLIError(str(exc)) from exc

        process.subscribe(BatchProgressDisplay())
        installed = _install_signal_handlers(process)
        try:
            state = await process.wait()
        except Exception as exc:
            # Rows already sent stay in the log; the report is still written
            print(f"ERROR: distribution run crashed: {exc}", file=sys.stderr)
            state = process.state
        finally:
            _remove_signal_handlers(installed)

    if report_path is not None:
        written = write_report(report_path, state, process.reason, process.admin_id)
        print(f"Report written to {written}")

    if state.mode is RunMode.STOPPED:
        return EXIT_STOPPED
    if state.mode is RunMode.FAILED:
        return EXIT_FAILED
    return EXIT_OK if state.all_success else EXIT_FAILED


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--api-url",
        default=None,
        help="Transfer service base URL (default from DISTRIBUTOR_API_URL)",
    )
    parser.add_argument(
        "--admin-id",
        default=None,
        help="Operator id sent with every transfer (default from DISTRIBUTOR_ADMIN_ID or 'unknown')",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="token-distribute",
        description="Distribute tokens to one or many recipients through the transfer service.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"token-distribute {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command")

    send_parser = subparsers.add_parser("send", help="distribute to a single recipient")
    send_parser.add_argument("address", help="Recipient address (0x + 40 hex characters)")
    send_parser.add_argument("amount", type=_parse_amount, help="Token amount (minimum 20)")
    send_parser.add_argument("-r", "--reason", required=True, help="Justification (minimum 5 characters)")
    send_parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Return once the transfer is submitted instead of waiting for confirmation",
    )
    _add_common_arguments(send_parser)

    batch_parser = subparsers.add_parser("batch", help="distribute rows from a CSV sheet, one at a time")
    batch_parser.add_argument("file", type=Path, help="CSV file: column A address, column B tokens, row 1 header")
    batch_parser.add_argument("-r", "--reason", required=True, help="Justification (minimum 5 characters)")
    batch_parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to wait between transfers (default from DISTRIBUTOR_ITEM_DELAY or 2)",
    )
    batch_parser.add_argument("--dry-run", action="store_true", help="Validate and show rows without sending")
    batch_parser.add_argument("--report", type=Path, default=None, help="Write the result log as JSON here")
    _add_common_arguments(batch_parser)

    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return EXIT_FAILED

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    try:
        try:
            validate_reason(args.reason)
        except PreconditionError as exc:
            raise CLIError(str(exc)) from exc

        config = _build_config(args)
        summary = {
            "Command": args.command,
            "Transfer API": config.api_url or "(missing)",
            "Endpoint": config.endpoint,
            "Admin ID": config.admin_id,
            "Env File": str(used_env_file) if used_env_file else "-",
            "Logging": effective_log_mode,
        }

        if args.command == "send":
            summary["Wait For Confirmation"] = "no" if args.no_wait else "yes"
            render_configuration_summary(summary)
            return asyncio.run(
                _run_send(config, args.address, args.amount, args.reason, not args.no_wait)
            )

        try:
            requests = read_csv(args.file.expanduser())
        except (OSError, UnicodeDecodeError) as exc:
            raise CLIError(f"cannot read {args.file}: {exc}") from exc

        rows = validate_rows(requests)
        summary["Source"] = str(args.file)
        summary["Item Delay"] = f"{config.item_delay:g}s"
        render_configuration_summary(summary)
        render_validation_table(rows)

        if args.dry_run:
            return EXIT_OK if valid_rows(rows) else EXIT_FAILED

        return asyncio.run(_run_batch(config, rows, args.reason, args.report))
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILED
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return EXIT_STOPPED


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
