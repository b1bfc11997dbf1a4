"""SQLite-backed conversation log implementing ConversationLog with WAL + safe PRAGMAs"""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import List

from ideate_agent.core.interfaces import ConversationLog
from ideate_agent.core.types import ConversationTurn, Role, ToolCallRecord


class SqliteConversationLog(ConversationLog):
    def __init__(self, dsn: str = "sqlite:///./data/ideate.db"):
        # Parse DSN
        if dsn.startswith("sqlite:///"):
            path = dsn[len("sqlite:///") :]
        else:
            path = dsn

        if path == ":memory:":
            target = path
        else:
            # Ensure parent directory exists
            p = Path(path).expanduser().resolve()
            p.parent.mkdir(parents=True, exist_ok=True)
            target = str(p)

        # Connect with WAL and pragmas
        self.conn = sqlite3.connect(target, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._init_pragmas()
        self._init_schema()

    def _init_pragmas(self) -> None:
        cur = self.conn.cursor()
        cur.execute("PRAGMA journal_mode=WAL;")
        cur.execute("PRAGMA synchronous=NORMAL;")
        self.conn.commit()

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS turns (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                turn_id TEXT NOT NULL,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                tool_calls TEXT NOT NULL,
                ts TEXT NOT NULL
            )
            """
        )
        # seq keeps append order even when two turns share a timestamp
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_conversation_seq ON turns(conversation_id, seq)"
        )
        self.conn.commit()

    async def append(self, conversation_id: str, turn: ConversationTurn) -> None:
        self.conn.execute(
            "INSERT INTO turns(conversation_id, turn_id, role, content, tool_calls, ts) VALUES (?, ?, ?, ?, ?, ?)",
            (
                conversation_id,
                turn.id,
                str(turn.role),
                turn.content,
                json.dumps([tc.to_dict() for tc in turn.tool_calls]),
                turn.timestamp,
            ),
        )
        self.conn.commit()

    async def list(self, conversation_id: str) -> List[ConversationTurn]:
        rows = self.conn.execute(
            "SELECT turn_id, role, content, tool_calls, ts FROM turns WHERE conversation_id = ? ORDER BY seq ASC",
            (conversation_id,),
        ).fetchall()
        return [
            ConversationTurn(
                role=Role(r["role"]),
                content=r["content"],
                id=r["turn_id"],
                timestamp=r["ts"],
                tool_calls=[ToolCallRecord.from_dict(tc) for tc in json.loads(r["tool_calls"] or "[]")],
            )
            for r in rows
        ]

    async def clear(self, conversation_id: str) -> int:
        cur = self.conn.cursor()
        cur.execute("DELETE FROM turns WHERE conversation_id = ?", (conversation_id,))
        deleted_count = cur.rowcount
        self.conn.commit()
        return deleted_count

    async def list_conversations(self) -> List[str]:
        rows = self.conn.execute(
            "SELECT conversation_id, MAX(seq) AS last_seq FROM turns GROUP BY conversation_id ORDER BY last_seq DESC"
        ).fetchall()
        return [r["conversation_id"] for r in rows]

    def close(self) -> None:
        self.conn.close()
