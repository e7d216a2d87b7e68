"""Local Audio Cache

再生済み音声をメッセージIDごとにローカルSQLiteへ保存するキャッシュ。
サーバー側の永続化とは独立しており、保持期間（デフォルト30日）を過ぎた
エントリはキャッシュを開いたときに一度だけ掃除する。

Related Classes: AudioService (audio_service.py)
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
from typing import Callable, Iterator, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(days=30)


class AudioCache:
    """SQLiteベースの音声キャッシュ（message_id → base64音声）"""

    def __init__(
        self,
        db_path: Optional[Path] = None,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            db_path: キャッシュファイルのパス
            max_age: 保持期間
            clock: 現在時刻（epoch秒）を返す関数
        """
        root = Path(__file__).resolve().parents[2]
        default_path = root / "data" / "audio_cache.db"
        env_path = os.getenv("AI_CHAT_AUDIO_CACHE_PATH")
        if db_path:
            self.db_path = Path(db_path)
        elif env_path:
            self.db_path = Path(env_path)
        else:
            self.db_path = default_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.max_age = max_age
        self._clock = clock
        self._write_lock = threading.Lock()
        self._initialize()

        removed = self.sweep()
        if removed:
            logger.info("音声キャッシュの期限切れエントリを %d 件削除しました", removed)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS audio_cache (
                    message_id INTEGER PRIMARY KEY,
                    audio_base64 TEXT NOT NULL,
                    timestamp REAL NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_audio_cache_timestamp ON audio_cache(timestamp)"
            )

    def get(self, message_id: int) -> Optional[str]:
        """キャッシュ済み音声を取得（なければNone）。音声の生成は行わない。"""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT audio_base64 FROM audio_cache WHERE message_id = ?", (message_id,)
            ).fetchone()
        return row["audio_base64"] if row else None

    def set(self, message_id: int, audio_base64: str) -> None:
        """音声を保存（既存エントリは上書きし、タイムスタンプも更新）"""
        with self._write_lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO audio_cache (message_id, audio_base64, timestamp)
                VALUES (?, ?, ?)
                ON CONFLICT(message_id) DO UPDATE SET
                    audio_base64 = excluded.audio_base64,
                    timestamp = excluded.timestamp
                """,
                (message_id, audio_base64, self._clock()),
            )

    def sweep(self, max_age: Optional[timedelta] = None) -> int:
        """保持期間より古いエントリを削除

        Returns:
            削除した件数
        """
        if max_age is None:
            max_age = self.max_age
        cutoff = self._clock() - max_age.total_seconds()
        with self._write_lock, self._connect() as conn:
            cursor = conn.execute("DELETE FROM audio_cache WHERE timestamp < ?", (cutoff,))
            return cursor.rowcount

    def clear(self) -> None:
        """全エントリを削除"""
        with self._write_lock, self._connect() as conn:
            conn.execute("DELETE FROM audio_cache")

    def __len__(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM audio_cache").fetchone()[0]
