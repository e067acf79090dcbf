"""SessionStore: typed JSON records over an opaque key-value store."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from sessionlab.core.models import (
    InfoCategory,
    MetricsHistoryEntry,
    SessionStatus,
    SessionType,
    SharedInfo,
    TestSession,
    utcnow,
)
from sessionlab.errors import StorageWriteError
from sessionlab.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

TEST_SESSIONS_KEY = "test_sessions"
METRICS_HISTORY_KEY = "metrics_history"
SHARED_INFO_KEY = "shared_info"


class SessionStore:
    """Sole owner of the persisted sessions, metrics history and shared info.

    Reads never raise: a missing key, a failing backend or malformed JSON all
    read as empty data. Writes raise StorageWriteError.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    # --- Raw JSON access ---

    async def _read_json(self, key: str, expected: type) -> Any:
        try:
            raw = await self.kv.get(key)
        except Exception as e:
            logger.warning("Error reading %s, treating as empty: %s", key, e)
            return expected()

        if not raw:
            return expected()

        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Unreadable %s payload, treating as empty: %s", key, e)
            return expected()

        if not isinstance(data, expected):
            logger.warning("Unexpected %s payload type %s, treating as empty", key, type(data).__name__)
            return expected()
        return data

    async def _write_json(self, key: str, data: Any) -> None:
        try:
            await self.kv.set(key, json.dumps(data))
        except Exception as e:
            raise StorageWriteError(key, str(e)) from e

    # --- Test sessions ---

    async def get_all(self) -> list[TestSession]:
        """All stored sessions in insertion order. Corrupt records are skipped."""
        sessions: list[TestSession] = []
        for item in await self._read_json(TEST_SESSIONS_KEY, list):
            try:
                sessions.append(TestSession.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping corrupt test session record: %s", e.errors()[:1])
        return sessions

    async def get_by_id(self, session_id: str) -> TestSession | None:
        for session in await self.get_all():
            if session.id == session_id:
                return session
        return None

    async def save(self, session: TestSession) -> None:
        """Insert the session or replace the stored one with the same id."""
        sessions = await self.get_all()
        for index, existing in enumerate(sessions):
            if existing.id == session.id:
                sessions[index] = session
                break
        else:
            sessions.append(session)

        await self._write_json(TEST_SESSIONS_KEY, [s.to_json_dict() for s in sessions])

    async def has_completed_baseline(self) -> bool:
        return any(
            s.type == SessionType.BASELINE and s.status == SessionStatus.COMPLETED
            for s in await self.get_all()
        )

    # --- Metrics history ---

    async def get_history(self) -> dict[str, list[MetricsHistoryEntry]]:
        """Metric name -> entries in the order they were appended."""
        history: dict[str, list[MetricsHistoryEntry]] = {}
        for metric, items in (await self._read_json(METRICS_HISTORY_KEY, dict)).items():
            if not isinstance(items, list):
                logger.warning("Skipping malformed history series %s", metric)
                continue
            entries = history.setdefault(metric, [])
            for item in items:
                try:
                    entries.append(MetricsHistoryEntry.model_validate(item))
                except ValidationError:
                    logger.warning("Skipping corrupt history entry for %s", metric)
        return history

    async def append_history(self, metric_name: str, entry: MetricsHistoryEntry) -> None:
        history = await self.get_history()
        history.setdefault(metric_name, []).append(entry)
        await self._write_json(
            METRICS_HISTORY_KEY,
            {name: [e.to_json_dict() for e in entries] for name, entries in history.items()},
        )

    # --- Shared info ---

    async def get_shared_info(self) -> SharedInfo:
        data = await self._read_json(SHARED_INFO_KEY, dict)
        return {k: v for k, v in data.items() if isinstance(v, dict)}

    async def save_shared_info(
        self, category: InfoCategory | str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Shallow-merge ``payload`` into the category and stamp lastUpdated."""
        category = InfoCategory(category).value
        shared = await self.get_shared_info()
        shared[category] = {
            **shared.get(category, {}),
            **payload,
            "lastUpdated": utcnow().isoformat(),
        }
        await self._write_json(SHARED_INFO_KEY, shared)
        return shared[category]
