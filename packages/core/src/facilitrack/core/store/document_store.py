"""DocumentStore SQLite 实现

单例文档（dashboard_stats/summary、system_stats/*）以 "collection/doc_id" 为键，
data 列为 JSON 对象。合并写入使用 SQLite json_patch：
只覆盖本次提供的键，不丢弃未提及的键；并发写入时后写者胜出。
"""

import json
from typing import Any

import aiosqlite


class SqliteDocumentStore:
    """DocumentStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def merge_document(
        self,
        doc_id: str,
        data: dict[str, Any],
        updated_at: str,
    ) -> None:
        """合并写入文档（不存在则创建）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        payload = json.dumps(data, ensure_ascii=False)
        await self._conn.execute(
            """
            INSERT INTO documents (doc_id, data, updated_at)
            VALUES (?, json(?), ?)
            ON CONFLICT(doc_id) DO UPDATE SET
                data = json_patch(documents.data, excluded.data),
                updated_at = excluded.updated_at
            """,
            (doc_id, payload, updated_at),
        )

    async def get_document(self, doc_id: str) -> dict[str, Any] | None:
        """读取文档内容"""
        cursor = await self._conn.execute(
            "SELECT data FROM documents WHERE doc_id = ?",
            (doc_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return json.loads(row[0]) if row[0] else {}

    async def increment_archive_counters(
        self,
        doc_id: str,
        day: str,
        last_archived: str,
        updated_at: str,
    ) -> None:
        """daily[day] 与 total_archived 各加一，并记录 last_archived

        自增在单条语句内完成，不经过读-改-写。
        此方法不自动提交事务。
        """
        await self._conn.execute(
            """
            INSERT INTO documents (doc_id, data, updated_at)
            VALUES (
                :doc_id,
                json_object(
                    'daily', json_object(:day, 1),
                    'total_archived', 1,
                    'last_archived', :last_archived
                ),
                :updated_at
            )
            ON CONFLICT(doc_id) DO UPDATE SET
                data = json_set(
                    documents.data,
                    '$.daily',
                    json(COALESCE(json_extract(documents.data, '$.daily'), '{}')),
                    :day_path,
                    COALESCE(json_extract(documents.data, :day_path), 0) + 1,
                    '$.total_archived',
                    COALESCE(json_extract(documents.data, '$.total_archived'), 0) + 1,
                    '$.last_archived',
                    :last_archived
                ),
                updated_at = excluded.updated_at
            """,
            {
                "doc_id": doc_id,
                "day": day,
                "day_path": f'$.daily."{day}"',
                "last_archived": last_archived,
                "updated_at": updated_at,
            },
        )
