"""JSON and CSV export, and tolerant JSON import, of transaction lists.

JSON uses the camelCase field names of :class:`~purchase_ledger.models.Transaction`
so exported ledgers can be imported back unchanged. Import validates every row
on its own; a bad row is reported as ``"Row N: ..."`` and the rest still load.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Sequence
from io import StringIO

from pydantic import TypeAdapter, ValidationError

from .logging_setup import get_logger
from .models import ImportReport, Transaction

_logger = get_logger("purchase_ledger.exports")

CSV_HEADERS: tuple[str, ...] = ("Date", "Sender", "Item", "Amount", "Original Message")

_LIST_ADAPTER = TypeAdapter(list[Transaction])


def export_json(transactions: Sequence[Transaction], *, indent: int | None = 2) -> str:
    return _LIST_ADAPTER.dump_json(list(transactions), by_alias=True, indent=indent).decode(
        "utf-8"
    )


def export_csv(transactions: Sequence[Transaction]) -> str:
    """Render ``transactions`` as CSV; every cell quoted, dates as ``YYYY-MM-DD``.

    An empty list renders as an empty string.
    """

    if not transactions:
        return ""
    buf = StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for tx in transactions:
        writer.writerow(
            [
                tx.date.date().isoformat(),
                tx.sender,
                tx.item,
                str(tx.amount),
                tx.original_message or "",
            ]
        )
    return buf.getvalue().rstrip("\n")


def _row_error(exc: ValidationError) -> str:
    return ", ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" if err["loc"] else err["msg"]
        for err in exc.errors()
    )


def import_json(data: str) -> ImportReport:
    """Parse a JSON array of transactions.

    Raises ``ValueError`` when ``data`` is not a JSON array at all.
    """

    try:
        rows = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to import JSON: {exc}") from exc
    if not isinstance(rows, list):
        raise ValueError("Failed to import JSON: expected an array")

    report = ImportReport()
    for i, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            report.errors.append(f"Row {i}: expected an object")
            continue
        try:
            report.transactions.append(Transaction.model_validate(row))
        except ValidationError as exc:
            report.errors.append(f"Row {i}: {_row_error(exc)}")

    _logger.info(
        "import:done rows=%d imported=%d errors=%d",
        len(rows),
        len(report.transactions),
        len(report.errors),
    )
    return report


__all__ = ["CSV_HEADERS", "export_json", "export_csv", "import_json"]
