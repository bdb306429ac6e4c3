from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from bondgen.config.loader import ConfigError, GenerateConfig, load_config
from bondgen.logging.error_log import ErrorLogBuffer
from bondgen.logging.init import enable_debug, log_summary, setup_logging
from bondgen.parsing.cusip_schedule import parse_cusip_schedule
from bondgen.parsing.maturity import parse_maturity_schedule
from bondgen.services.orchestrator import GenerationRequest, as_workbook, generate_bond_package
from bondgen.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load ``.env`` then the job file (``BONDGEN_CONFIG`` or config/generate.yml)
- Read the template and both schedules
- Generate the archive and write it to ``output``
- Flush the diagnostics log and print the SUMMARY line

Exit codes: 0 success, 1 configuration / input / output errors, 2 generation
failures (bad schedules, rejected template, fill or archive errors).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_GENERATION_FAILURE = 2

CONFIG_ENV = "BONDGEN_CONFIG"
DEFAULT_CONFIG = Path("config/generate.yml")


def _load_env_file(path: Path) -> None:
    """Load .env with python-dotenv. Variables already set in the process win."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="bondgen", description="Bond certificate package generator")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print parsed schedule rows with their status then exit")
    return p.parse_args(argv)


def _build_request(cfg: GenerateConfig) -> GenerationRequest:
    """Read input files. Raises OSError when one is missing or unreadable."""
    return GenerationRequest(
        template=cfg.template.read_bytes(),
        maturity_schedule=cfg.maturity_schedule.read_bytes(),
        cusip_schedule=cfg.cusip_schedule.read_bytes(),
        template_name=cfg.template.name,
        maturity_name=cfg.maturity_schedule.name,
        cusip_name=cfg.cusip_schedule.name,
        dated_date=cfg.dated_date,
        info=cfg.info,
        numbering=cfg.numbering,
        allow_partial_schedules=cfg.allow_partial_schedules,
    )


def _inspect_data(request: GenerationRequest) -> int:
    code = EXIT_SUCCESS
    sources = (
        (request.maturity_name, request.maturity_schedule, parse_maturity_schedule),
        (request.cusip_name, request.cusip_schedule, parse_cusip_schedule),
    )
    for name, content, parse in sources:
        print(f"FILE: {name}")
        book = as_workbook(content, name)
        parsed = parse(book.unwrap()) if book.ok else book
        if not parsed.ok:
            print(f"  error={parsed.error}")
            code = EXIT_GENERATION_FAILURE
            continue
        schedule = parsed.unwrap()
        s = schedule.summary
        print(
            f"  header_row={schedule.diagnostics.header_row_index} columns={schedule.diagnostics.column_mapping} "
            f"total={s.total} valid={s.valid} warnings={s.warnings} errors={s.errors} skipped={s.skipped}"
        )
        for row in schedule.parsed_rows:
            notes = "; ".join((*row.errors, *row.warnings))
            print(f"    row {row.row_number}: {row.status.value}" + (f" ({notes})" if notes else ""))
        for warning in schedule.warnings:
            print(f"  warning: {warning}")
    return code


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # [] が渡されたときに sys.argv (pytest の引数) を読まないよう None のときだけ参照
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    config_path = Path(os.getenv(CONFIG_ENV) or DEFAULT_CONFIG)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        request = _build_request(cfg)
    except OSError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(request)

    error_log = ErrorLogBuffer()
    result = generate_bond_package(request, error_log)
    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"diagnostics written to {log_path}")

    if not result.ok:
        return EXIT_GENERATION_FAILURE
    generated = result.unwrap()

    try:
        cfg.output.parent.mkdir(parents=True, exist_ok=True)
        cfg.output.write_bytes(generated.archive)
    except OSError as e:
        logger.error(f"output: {e}")
        return EXIT_FATAL
    logger.info(f"archive written to {cfg.output}")

    # log_summary が "SUMMARY " を付けるので除いて渡す
    log_summary(render_summary_line(generated).removeprefix("SUMMARY "))
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
