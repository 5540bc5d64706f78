from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from roster_import.config.loader import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    ImportConfig,
    load_config,
    load_session,
)
from roster_import.errors import RosterImportError
from roster_import.excel.reader import DuplicateEmailError, read_roster
from roster_import.logging.error_log import ErrorLogBuffer
from roster_import.logging.init import get_logger, log_summary, setup_logging
from roster_import.models.error_record import (
    DUPLICATE_EMAIL,
    INVALID_ROW,
    SKIPPED_BY_SERVER,
    ErrorRecord,
)
from roster_import.models.import_result import ImportResult, ResultTab
from roster_import.models.row_record import RowRecord
from roster_import.services.api_client import ImportClient
from roster_import.services.importer import RosterImporter
from roster_import.services.preview import BatchSummary, PreviewState, StatusFilter
from roster_import.services.progress import ProgressTracker
from roster_import.services.summary import build_summary, render_summary_line
from roster_import.services.validator import find_violations

"""CLI entrypoint.

Subcommands:
- preview FILE   show summary cards and one filtered page of the roster
- import FILE    submit the valid rows, print success/skipped, write the error log
- undo           ask the backend to revert its last import
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so ROSTER_* variables beat whatever the shell exported."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="roster-import", description="Import user rosters (.xlsx) into the backend")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    pv = sub.add_parser("preview", help="Show a page of the roster with validity markers")
    pv.add_argument("file", type=Path)
    pv.add_argument("--status", choices=[s.value for s in StatusFilter], default=StatusFilter.ALL.value)
    pv.add_argument("--search", default="")
    pv.add_argument("--page", type=int, default=1)

    im = sub.add_parser("import", help="Submit the roster's valid rows")
    im.add_argument("file", type=Path)
    im.add_argument(
        "--skip-invalid",
        action="store_true",
        help="Submit even when some rows are invalid (they are left out)",
    )

    ud = sub.add_parser("undo", help="Undo the most recent import")
    ud.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    return p.parse_args(argv)


def _make_client(cfg: ImportConfig) -> ImportClient:
    return ImportClient(cfg.backend_url, timeout=cfg.request_timeout)


def _confirm_undo() -> bool:
    try:
        answer = input("Undo the last import? The imported users will be deleted [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _check_rows(rows: list[RowRecord]) -> dict[int, list[str]]:
    """Violations per row index (only rows that have any)."""
    problems: dict[int, list[str]] = {}
    with ProgressTracker(len(rows)) as progress:
        for i, row in enumerate(rows):
            violations = find_violations(row)
            if violations:
                problems[i] = violations
            progress.advance()
            progress.set_postfix(invalid=len(problems))
    return problems


def _format_row(row: RowRecord, violations: list[str] | None = None) -> str:
    mark = "✗" if violations else "✓"
    line = (
        f"  {mark} {row.row_number:>4}  {row.display_name or '-':<30} "
        f"{row.email or '-':<32} {row.student_id or '-':<10} {row.role or '-'}"
    )
    if violations:
        line += f"  ({'; '.join(violations)})"
    return line


def _print_summary_cards(file_name: str, summary: BatchSummary) -> None:
    print(f"FILE: {file_name}")
    print(
        f"  total={summary.total} valid={summary.valid} "
        f"invalid={summary.invalid} user_type={summary.user_type}"
    )


def _print_result(result: ImportResult, page_size: int) -> None:
    for tab in ResultTab:
        page = result.page(tab, 1, page_size)
        print(f"{tab.value.upper()} ({page.total_items})")
        for item in page.items:
            if tab is ResultTab.SUCCESS:
                print(_format_row(item))
            else:
                print(f"  ✗ {item.row_number:>4}  {item.name or '-':<30} {item.email:<32} {item.reason}")
        if page.total_pages > 1:
            print(f"  ... {page.total_items - len(page.items)} more")


def _run_preview(args: argparse.Namespace, cfg: ImportConfig) -> int:
    logger = get_logger()
    try:
        rows = read_roster(args.file)
    except DuplicateEmailError as e:
        logger.error(f"duplicate emails in {args.file.name}: {', '.join(e.emails)}")
        return EXIT_FATAL
    except RosterImportError as e:
        logger.error(str(e))
        return EXIT_FATAL

    state = PreviewState(rows, page_size=cfg.page_size)
    state.status = args.status
    state.search = args.search
    state.page = args.page

    _print_summary_cards(args.file.name, state.summary())
    page = state.current_page()
    for row in page.items:
        print(_format_row(row, find_violations(row)))
    print(f"page {page.page}/{page.total_pages} ({page.total_items} rows)")
    return EXIT_SUCCESS


def _run_import(args: argparse.Namespace, cfg: ImportConfig) -> int:
    logger = get_logger()
    errors = ErrorLogBuffer(Path(cfg.error_log_dir))
    file_name = args.file.name

    with _make_client(cfg) as client:
        importer = RosterImporter(
            client,
            load_session(),
            page_size=cfg.page_size,
            undo_window_seconds=cfg.undo_window_seconds,
        )
        try:
            rows = importer.load_file(args.file)
        except DuplicateEmailError as e:
            logger.error(f"duplicate emails in {file_name}: {', '.join(e.emails)}")
            errors.extend([
                ErrorRecord.create(file_name, -1, email, DUPLICATE_EMAIL, "email appears on more than one row")
                for email in e.emails
            ])
            path = errors.flush()
            logger.info(f"error log written: {path}")
            return EXIT_FATAL
        except RosterImportError as e:
            logger.error(str(e))
            return EXIT_FATAL

        problems = _check_rows(rows)
        batch = importer.preview.summary()
        _print_summary_cards(file_name, batch)
        for i, violations in problems.items():
            row = rows[i]
            logger.warning(f"row {row.row_number} invalid: {'; '.join(violations)}")
            errors.append(ErrorRecord.create(file_name, row.row_number, row.email, INVALID_ROW, "; ".join(violations)))

        if problems and not args.skip_invalid:
            logger.error(f"{len(problems)} invalid rows; fix the file or pass --skip-invalid")
            logger.info(f"error log written: {errors.flush()}")
            log_summary(render_summary_line(build_summary(file_name, batch, None))[len("SUMMARY "):])
            return EXIT_PARTIAL

        try:
            result = importer.submit()
        except RosterImportError as e:
            logger.error(f"import failed: {e}")
            errors.flush()
            return EXIT_FATAL

        _print_result(result, cfg.page_size)
        for s in result.skipped:
            errors.append(ErrorRecord.create(file_name, s.row_number, s.email, SKIPPED_BY_SERVER, s.reason))
        path = errors.flush()
        if path is not None:
            logger.info(f"error log written: {path}")
        if result.success:
            logger.info(
                f"undo is available for {importer.undo_seconds_remaining()}s: roster-import undo"
            )

    summary_line = render_summary_line(build_summary(file_name, batch, result))
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])
    if problems or result.skipped:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def _run_undo(args: argparse.Namespace, cfg: ImportConfig) -> int:
    logger = get_logger()
    confirm = (lambda: True) if args.yes else _confirm_undo
    with _make_client(cfg) as client:
        importer = RosterImporter(client, load_session(), page_size=cfg.page_size)
        try:
            done = importer.undo(confirm)
        except RosterImportError as e:
            logger.error(f"undo failed: {e}")
            return EXIT_FATAL
    return EXIT_SUCCESS if done else EXIT_PARTIAL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when no list was given, so main([]) in tests stays isolated
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        for h in logger.handlers:
            h.setLevel("DEBUG")
        logger.setLevel("DEBUG")
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "preview":
        return _run_preview(args, cfg)
    if args.command == "import":
        return _run_import(args, cfg)
    return _run_undo(args, cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
