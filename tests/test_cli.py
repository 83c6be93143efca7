from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from purchase_ledger.cli import app

CHAT = "\n".join(
    [
        "03/01/2024, 9:35 pm - Monir: alo 140",
        "chapati 110",
        "20/01/2024, 8:00 am - Monir: milk 100",
        "05/02/2024, 7:15 pm - Rahim: bread 50",
        "05/02/2024, 7:20 pm - Monir: dim 45",
    ]
)

runner = CliRunner()


@pytest.fixture()
def chat_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    # Run from an empty directory so no developer .env is picked up.
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "chat.txt"
    path.write_text(CHAT, encoding="utf-8")
    return path


def test_parse_prints_transactions_and_summary(chat_file: Path):
    result = runner.invoke(app, ["parse", "--chat-path", str(chat_file)])
    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[:4] == [
        "2024-01-03 21:35\tpotato\t140",
        "2024-01-03 21:35\tchapati\t110",
        "2024-01-20 08:00\tmilk\t100",
        "2024-02-05 19:20\teggs\t45",
    ]
    assert lines[4].startswith("Transactions: 4  Lines: 5 (contributing 4, failed 0, skipped 1)")


def test_parse_json(chat_file: Path):
    result = runner.invoke(app, ["parse", "--chat-path", str(chat_file), "--json"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [t["item"] for t in payload["transactions"]] == ["potato", "chapati", "milk", "eggs"]
    assert payload["errors"] == []
    assert payload["needsReview"] == []
    assert payload["summary"]["totalLines"] == 5
    assert payload["summary"]["duplicatesSkipped"] == 0


def test_parse_for_another_sender(chat_file: Path):
    result = runner.invoke(app, ["parse", "--chat-path", str(chat_file), "--sender", "Rahim"])
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines()[0] == "2024-02-05 19:15\tbread\t50"


def test_sender_from_dotenv(chat_file: Path):
    (chat_file.parent / ".env").write_text("PL_TARGET_SENDER=rahim\n", encoding="utf-8")
    try:
        result = runner.invoke(app, ["parse", "--chat-path", str(chat_file), "--json"])
    finally:
        # load_dotenv writes straight into os.environ.
        os.environ.pop("PL_TARGET_SENDER", None)
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [t["item"] for t in payload["transactions"]] == ["bread"]


def test_parse_missing_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["parse", "--chat-path", str(tmp_path / "nope.txt")])
    assert result.exit_code == 1
    assert "Error: File not found" in result.output


def test_parse_persist_merges_into_database(chat_file: Path, tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}"
    args = ["parse", "--chat-path", str(chat_file), "--persist", "--database-url", url]

    first = runner.invoke(app, args)
    assert first.exit_code == 0, first.output
    assert "Persisted: added=4 skipped=0" in first.stdout

    second = runner.invoke(app, args)
    assert second.exit_code == 0, second.output
    assert "Persisted: added=0 skipped=4" in second.stdout


def test_bill(chat_file: Path):
    result = runner.invoke(app, ["bill", "--chat-path", str(chat_file)])
    assert result.exit_code == 0, result.output
    out = result.stdout
    assert "January 2024 (2023-12-15 to 2024-01-14)" in out
    assert "February 2024 (2024-01-15 to 2024-02-05)" in out
    assert out.rstrip().endswith("Grand total: 395.00")


def test_bill_with_explicit_range(chat_file: Path):
    args = ["bill", "--chat-path", str(chat_file), "--start", "2024-01-15", "--end", "2024-01-31"]
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output
    assert "January 2024" not in result.stdout
    assert result.stdout.rstrip().endswith("Grand total: 100.00")


def test_bill_rejects_reversed_range(chat_file: Path):
    args = ["bill", "--chat-path", str(chat_file), "--start", "2024-03-01", "--end", "2024-01-01"]
    result = runner.invoke(app, args)
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_months(chat_file: Path):
    result = runner.invoke(app, ["months", "--chat-path", str(chat_file)])
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == [
        "January 2024\t2023-12-15\t2024-01-14",
        "February 2024\t2024-01-15\t2024-02-05",
    ]


def test_months_without_purchases(chat_file: Path):
    result = runner.invoke(app, ["months", "--chat-path", str(chat_file), "--sender", "nobody"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "No transactions found."


def test_parse_help_documents_the_grouping_threshold():
    result = runner.invoke(app, ["parse", "--help"])
    assert result.exit_code == 0, result.output
    assert "PL_SIMILARITY_THRESHOLD" in result.output
    assert "0.75" in result.output
