"""Tests for the rfq-market command line."""

import json
from pathlib import Path

import pytest

from rfq_market.cli.main import main


def _run(capsys: pytest.CaptureFixture, db: Path, *argv: str) -> dict:
    main(["--db", str(db), *argv])
    return json.loads(capsys.readouterr().out)


def _create_rfq(capsys: pytest.CaptureFixture, db: Path) -> int:
    out = _run(
        capsys,
        db,
        "--as-user", "1", "--role", "buyer",
        "rfq", "create",
        "--title", "Logo design",
        "--description", "Bakery needs a new logo and cards.",
        "--budget-min", "100",
        "--budget-max", "500",
    )
    assert out["status"] == 201
    return out["data"]["id"]


class TestCli:
    def test_create_and_get(self, capsys: pytest.CaptureFixture, temp_db: Path) -> None:
        rfq_id = _create_rfq(capsys, temp_db)
        out = _run(capsys, temp_db, "rfq", "get", "--id", str(rfq_id))
        assert out["success"] is True
        assert out["data"]["title"] == "Logo design"

    def test_error_exits_non_zero(self, capsys: pytest.CaptureFixture, temp_db: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--db", str(temp_db), "rfq", "get", "--id", "999"])
        assert exc_info.value.code == 1
        out = json.loads(capsys.readouterr().out)
        assert out["status"] == 404

    def test_role_required_with_user(self, temp_db: Path) -> None:
        with pytest.raises(SystemExit):
            main(["--db", str(temp_db), "--as-user", "1", "rfq", "create", "--title", "Logo"])

    def test_bid_keywords_and_search(self, capsys: pytest.CaptureFixture, temp_db: Path) -> None:
        rfq_id = str(_create_rfq(capsys, temp_db))
        out = _run(capsys, temp_db, "--as-user", "10", "--role", "vendor", "bid", "create", "--rfq-id", rfq_id, "--amount", "250")
        assert out["status"] == 201

        out = _run(capsys, temp_db, "--as-user", "1", "--role", "buyer", "keywords", "add", "--rfq-id", rfq_id, "Logo", "cards")
        assert out["data"] == ["cards", "logo"]

        out = _run(capsys, temp_db, "search", "--q", "logo", "--keywords", "cards")
        assert [r["id"] for r in out["data"]] == [int(rfq_id)]
        assert out["meta"]["total"] == 1

        out = _run(capsys, temp_db, "trends", "trending")
        assert [t["keyword"] for t in out["data"]] == ["logo"]

        out = _run(capsys, temp_db, "trends", "suggest", "--q", "lo")
        assert out["data"] == ["logo"]

        out = _run(capsys, temp_db, "trends", "recent")
        assert out["data"] == ["logo"]

    def test_award_from_cli(self, capsys: pytest.CaptureFixture, temp_db: Path) -> None:
        rfq_id = str(_create_rfq(capsys, temp_db))
        bid = _run(capsys, temp_db, "--as-user", "10", "--role", "vendor", "bid", "create", "--rfq-id", rfq_id, "--amount", "300")
        out = _run(capsys, temp_db, "--as-user", "1", "--role", "buyer", "bid", "award", "--id", str(bid["data"]["id"]))
        assert out["data"]["status"] == "awarded"
        out = _run(capsys, temp_db, "rfq", "list", "--status", "closed")
        assert [r["id"] for r in out["data"]] == [int(rfq_id)]
