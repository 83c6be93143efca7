"""Command line interface for ``purchase_ledger``.

Commands
--------
- ``parse --chat-path PATH`` prints the extracted transactions and a summary
  (``--json`` for machine-readable output, ``--persist`` to merge them into
  the ledger database).
- ``bill --chat-path PATH [--start D] [--end D]`` prints per-cycle bills.
- ``months --chat-path PATH`` lists the billing cycles the chat spans.

Failures are reported as ``Error: ...`` on stderr with exit code 1.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging
from .models import ParseResult

# ---- Helpers -------------------------------------------------------------------


def _fail(message: str) -> typer.Exit:
    print(f"Error: {message}", file=sys.stderr)
    return typer.Exit(code=1)


def _read_chat(chat_path: Path) -> str:
    try:
        # utf-8-sig drops the BOM some exporters write.
        return chat_path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        raise _fail(f"File not found: {chat_path}") from None
    except PermissionError:
        raise _fail(f"Permission denied: {chat_path}") from None
    except UnicodeDecodeError as e:
        raise _fail(f"File is not valid UTF-8: {chat_path}: {e}") from None


def _parse_chat(chat_path: Path, sender: str | None) -> ParseResult:
    from .api import parse
    from .config import ParserConfig

    raw = _read_chat(chat_path)
    try:
        config = ParserConfig.from_env(target_sender=sender)
    except ValueError as e:
        raise _fail(f"invalid configuration: {e}") from None
    return parse(raw, config=config)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Extract purchases from an exported WhatsApp chat and build 15th-to-14th "
        "billing summaries. Loads PL_* settings from a local .env before running."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Typer will inspect these when used as default values below.
CHAT_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--chat-path",
    help="Path to an exported chat (.txt)",
    dir_okay=False,
    file_okay=True,
    exists=False,  # allow non-existent here; the handler will report nice errors
)
SENDER_OPTION: OptionInfo = typer.Option(
    ...,
    "--sender",
    help="Sender whose purchases are extracted (overrides PL_TARGET_SENDER).",
)
DATE_FORMATS = ["%Y-%m-%d"]


@app.command("parse")
def parse_cmd(
    chat_path: Annotated[Path, CHAT_PATH_OPTION],
    *,
    sender: Annotated[str | None, SENDER_OPTION] = None,
    json_output: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
    persist: bool = typer.Option(
        False, help="Merge the parsed transactions into the ledger database."
    ),
    database_url: str | None = typer.Option(
        None, help="Override LEDGER_DATABASE_URL / DATABASE_URL."
    ),
) -> None:
    """Parse a chat export and print the transactions found.

    Item names are grouped when their letter sets overlap by more than
    PL_SIMILARITY_THRESHOLD (default 0.75). Lower values group more loosely;
    at 0.2 short unrelated names such as milk and oil merge too.
    """

    result = _parse_chat(chat_path, sender)

    if persist:
        try:
            from ledger_db.client import init_schema, session_scope

            from .persistence import merge_into_store

            init_schema(database_url=database_url)
            with session_scope(database_url=database_url) as session:
                added, skipped = merge_into_store(session, result.transactions)
        except Exception as e:
            raise _fail(f"persistence failed: {e}") from None
    else:
        added = skipped = 0

    s = result.summary
    if json_output:
        from .exports import export_json

        payload = {
            "transactions": json.loads(export_json(result.transactions)),
            "errors": [
                {"line": e.line, "message": e.message, "originalText": e.original_text}
                for e in result.errors
            ],
            "needsReview": [
                {"line": d.line, "date": d.date.isoformat(), "text": d.text, "reason": d.reason}
                for d in result.needs_review
            ],
            "summary": {
                "totalLines": s.total_lines,
                "successfulTransactions": s.successful_transactions,
                "contributingLines": s.contributing_lines,
                "failedLines": s.failed_lines,
                "skippedLines": s.skipped_lines,
                "duplicatesSkipped": s.duplicates_skipped,
                "processingTimeMs": round(s.processing_time_ms, 3),
            },
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    for tx in result.transactions:
        print(f"{tx.date:%Y-%m-%d %H:%M}\t{tx.item}\t{tx.amount}")
    print(
        f"Transactions: {s.successful_transactions}  Lines: {s.total_lines} "
        f"(contributing {s.contributing_lines}, failed {s.failed_lines}, "
        f"skipped {s.skipped_lines})  Duplicates skipped: {s.duplicates_skipped}"
    )
    for err in result.errors:
        print(f"line {err.line}: {err.message}: {err.original_text}", file=sys.stderr)
    if result.needs_review:
        print(f"Needs review: {len(result.needs_review)} message(s)")
        for d in result.needs_review:
            print(f"  line {d.line} ({d.date:%Y-%m-%d %H:%M}): {d.text}")
    if persist:
        print(f"Persisted: added={added} skipped={skipped}")


@app.command("bill")
def bill_cmd(
    chat_path: Annotated[Path, CHAT_PATH_OPTION],
    *,
    sender: Annotated[str | None, SENDER_OPTION] = None,
    start: datetime | None = typer.Option(
        None, formats=DATE_FORMATS, help="First day (default: earliest purchase)."
    ),
    end: datetime | None = typer.Option(
        None, formats=DATE_FORMATS, help="Last day (default: latest purchase)."
    ),
) -> None:
    """Print the billing summary for a date range."""

    from .billing import create_custom_period, format_bill, generate_billing_summary

    result = _parse_chat(chat_path, sender)
    txs = result.transactions
    if not txs and (start is None or end is None):
        print("No transactions found.")
        return

    first = start.date() if start else min(tx.date for tx in txs).date()
    last = end.date() if end else max(tx.date for tx in txs).date()
    try:
        summary = generate_billing_summary(txs, create_custom_period(first, last))
    except ValueError as e:
        raise _fail(str(e)) from None
    except RuntimeError as e:
        raise _fail(f"billing failed: {e}") from None

    for bill in summary.monthly_bills:
        print(format_bill(bill))
        print()
    print(f"Grand total: {summary.grand_total}")


@app.command("months")
def months_cmd(
    chat_path: Annotated[Path, CHAT_PATH_OPTION],
    *,
    sender: Annotated[str | None, SENDER_OPTION] = None,
) -> None:
    """List the billing cycles covered by the chat's purchases."""

    from .billing import get_available_months

    result = _parse_chat(chat_path, sender)
    months = get_available_months(result.transactions)
    if not months:
        print("No transactions found.")
        return
    for m in months:
        print(f"{m.label} {m.year}\t{m.start_date}\t{m.end_date}")


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m purchase_ledger.cli`
    app()
