"""SQLite storage for scored interview answers."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List

from .models import UserAnswer

_COLUMNS = (
    "id",
    "mock_id_ref",
    "question",
    "correct_answer",
    "user_answer",
    "feedback",
    "rating",
    "user_email",
    "created_at",
    "video_url",
)


class AnswerStore:
    """Persistent storage built on SQLite."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path)

    def initialize(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS user_answers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    mock_id_ref TEXT NOT NULL,
                    question TEXT NOT NULL,
                    correct_answer TEXT NOT NULL,
                    user_answer TEXT NOT NULL,
                    feedback TEXT NOT NULL,
                    rating TEXT NOT NULL,
                    user_email TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    video_url TEXT
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_user_answers_mock_user "
                "ON user_answers (mock_id_ref, user_email)"
            )
            conn.commit()

    def save_answer(self, answer: UserAnswer) -> UserAnswer:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO user_answers (
                    mock_id_ref, question, correct_answer, user_answer,
                    feedback, rating, user_email, created_at, video_url
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    answer.mock_id_ref,
                    answer.question,
                    answer.correct_answer,
                    answer.user_answer,
                    answer.feedback,
                    answer.rating,
                    answer.user_email,
                    answer.created_at,
                    answer.video_url,
                ),
            )
            conn.commit()
            row_id = cursor.lastrowid
        return answer.model_copy(update={"id": row_id})

    def fetch_answers(self, mock_id_ref: str, user_email: str) -> List[UserAnswer]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM user_answers "
                "WHERE mock_id_ref = ? AND user_email = ? ORDER BY id",
                (mock_id_ref, user_email),
            ).fetchall()
        return [UserAnswer(**dict(zip(_COLUMNS, row))) for row in rows]

    def delete_answers(self, mock_id_ref: str, user_email: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM user_answers WHERE mock_id_ref = ? AND user_email = ?",
                (mock_id_ref, user_email),
            )
            conn.commit()
            return cursor.rowcount


__all__ = ["AnswerStore"]
