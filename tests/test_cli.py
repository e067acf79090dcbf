"""Tests for the sessionlab CLI."""

import asyncio
import json

import pytest
from click.testing import CliRunner

from sessionlab.cli import cli
from sessionlab.core.engine import SessionLab
from sessionlab.core.models import SessionStatus
from sessionlab.storage import SQLiteKeyValueStore

from conftest import FakeAnalyzer, FakeChat


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "cli.db")


@pytest.fixture
def invoke(db):
    """Run a CLI command against a temporary database and fake services."""
    runner = CliRunner()

    def factory(settings):
        return SessionLab(settings, chat=FakeChat(), analyzer=FakeAnalyzer())

    def _invoke(*args):
        return runner.invoke(cli, ["--db", db, "--log-level", "ERROR", *args], obj={"lab_factory": factory})

    return _invoke


def session_ids(db, status=None):
    async def _load():
        lab = SessionLab(kv=SQLiteKeyValueStore(db), chat=FakeChat(), analyzer=FakeAnalyzer())
        return await lab.sessions()

    return [s.id for s in asyncio.run(_load()) if status is None or s.status == status]


class TestSessionCommands:
    def test_create_baseline(self, invoke, db):
        result = invoke("create", "baseline")
        assert result.exit_code == 0, result.output
        assert "Baseline Testing" in result.output
        assert len(session_ids(db)) == 1

    def test_create_requires_baseline(self, invoke, db):
        result = invoke("create", "recall")
        assert result.exit_code == 1
        assert "PreconditionError" in result.output
        assert session_ids(db) == []

    def test_create_rejects_unknown_type(self, invoke):
        result = invoke("create", "speed")
        assert result.exit_code == 2

    def test_start_complete_show(self, invoke, db, tmp_path):
        invoke("create", "baseline")
        [session_id] = session_ids(db)

        result = invoke("start", session_id)
        assert result.exit_code == 0, result.output
        assert "conv-1" in result.output

        transcript = tmp_path / "transcript.json"
        transcript.write_text(json.dumps({
            "messages": [
                {"text": "hi", "isUser": True},
                {"text": "hello there", "isUser": False, "metadata": {"responseTime": 200}},
            ]
        }))
        result = invoke("complete", session_id, str(transcript))
        assert result.exit_code == 0, result.output
        assert "Session completed" in result.output
        assert session_ids(db, SessionStatus.COMPLETED) == [session_id]

        result = invoke("show", session_id)
        assert "completionRate" in result.output
        assert "completed" in result.output

    def test_start_twice_reports_state_error(self, invoke, db):
        invoke("create", "baseline")
        [session_id] = session_ids(db)
        invoke("start", session_id)

        result = invoke("start", session_id)
        assert result.exit_code == 1
        assert "InvalidStateError" in result.output

    def test_complete_invalid_transcript(self, invoke, db, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{nope")
        result = invoke("complete", "any-id", str(bad))
        assert result.exit_code == 1
        assert "Invalid transcript" in result.output

    def test_fail(self, invoke, db):
        invoke("create", "baseline")
        [session_id] = session_ids(db)
        invoke("start", session_id)

        result = invoke("fail", session_id, "--reason", "user left")
        assert result.exit_code == 0, result.output
        assert session_ids(db, SessionStatus.FAILED) == [session_id]

    def test_show_missing(self, invoke):
        result = invoke("show", "missing")
        assert result.exit_code == 1
        assert "Session not found" in result.output


class TestListAndHistory:
    def test_list_empty(self, invoke):
        result = invoke("list")
        assert result.exit_code == 0
        assert "No test sessions found" in result.output

    def test_list_with_filter(self, invoke):
        invoke("create", "baseline", "--title", "Mine")
        result = invoke("list", "--type", "baseline")
        assert "Mine" in result.output
        result = invoke("list", "--type", "recall")
        assert "No test sessions found" in result.output

    def test_history_table(self, invoke):
        result = invoke("history")
        assert result.exit_code == 0, result.output
        for metric in ("recallRate", "personalizationScore"):
            assert metric in result.output


class TestShare:
    def test_share_fields(self, invoke):
        result = invoke("share", "basic", "name=Sam", "city=Austin")
        assert result.exit_code == 0, result.output
        assert "2 fields" in result.output

    def test_share_rejects_bad_pair(self, invoke):
        result = invoke("share", "basic", "oops")
        assert result.exit_code == 1
        assert "KEY=VALUE" in result.output

    def test_share_rejects_unknown_category(self, invoke):
        result = invoke("share", "finances", "a=b")
        assert result.exit_code == 2
