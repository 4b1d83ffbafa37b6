# Saved-word persistence (単語帳): the `vocabulary` table.
#
# Two backends share one contract: list() newest first, insert(), delete().
# `data` is an opaque JSON blob; it is written and read back unchanged.

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Protocol

import gspread
from google.oauth2.service_account import Credentials

import constants
from config import get_config
from errors import PersistenceError

logger = logging.getLogger(__name__)

SHEETS_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
]


@dataclass(frozen=True)
class SavedEntry:
    """One row of the vocabulary table."""
    id: str
    word: str
    data: Dict[str, Any]
    user_id: Optional[str]
    created_at: str


class VocabularyStore(Protocol):
    def list(self) -> List[SavedEntry]:
        ...

    def insert(self, word: str, data: Dict[str, Any], user_id: Optional[str] = None) -> SavedEntry:
        ...

    def delete(self, entry_id: str) -> None:
        ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _new_id() -> str:
    return uuid.uuid4().hex


# ==========================================
# SQLite
# ==========================================
class SqliteVocabularyStore:
    def __init__(self, db_path: Any) -> None:
        self.db_path = Path(db_path)
        self._ensure_table()

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_table(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._conn() as conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {constants.VOCAB_TABLE} (
                        id TEXT PRIMARY KEY,
                        word TEXT NOT NULL,
                        data TEXT NOT NULL,
                        user_id TEXT,
                        created_at TEXT NOT NULL
                            DEFAULT (strftime('%Y-%m-%dT%H:%M:%f+00:00', 'now'))
                    );
                    """
                )
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Cannot open vocabulary store at {self.db_path}: {e}") from e

    def list(self) -> List[SavedEntry]:
        try:
            with self._conn() as conn:
                rows = conn.execute(
                    f"""SELECT id, word, data, user_id, created_at
                        FROM {constants.VOCAB_TABLE}
                        ORDER BY created_at DESC, rowid DESC"""
                ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read vocabulary: {e}") from e
        return [
            SavedEntry(
                id=r["id"],
                word=r["word"],
                data=json.loads(r["data"]),
                user_id=r["user_id"],
                created_at=r["created_at"],
            )
            for r in rows
        ]

    def insert(self, word: str, data: Dict[str, Any], user_id: Optional[str] = None) -> SavedEntry:
        entry = SavedEntry(id=_new_id(), word=word, data=data, user_id=user_id, created_at=_now_iso())
        try:
            with self._conn() as conn:
                conn.execute(
                    f"""INSERT INTO {constants.VOCAB_TABLE} (id, word, data, user_id, created_at)
                        VALUES (?, ?, ?, ?, ?)""",
                    (entry.id, entry.word, json.dumps(data, ensure_ascii=False), entry.user_id, entry.created_at),
                )
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save {word!r}: {e}") from e
        return entry

    def delete(self, entry_id: str) -> None:
        try:
            with self._conn() as conn:
                conn.execute(f"DELETE FROM {constants.VOCAB_TABLE} WHERE id = ?", (entry_id,))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete {entry_id!r}: {e}") from e


# ==========================================
# Google Sheets (remote row store)
# ==========================================
def open_worksheet(spreadsheet_id: str, worksheet_name: str, service_account: Dict[str, Any]) -> Any:
    """Open (or create with a header row) the vocabulary worksheet."""
    creds = Credentials.from_service_account_info(service_account, scopes=SHEETS_SCOPES)
    client = gspread.authorize(creds)
    spreadsheet = client.open_by_key(spreadsheet_id)
    try:
        return spreadsheet.worksheet(worksheet_name)
    except gspread.exceptions.WorksheetNotFound:
        worksheet = spreadsheet.add_worksheet(title=worksheet_name, rows=1000, cols=len(constants.SHEETS_HEADER))
        worksheet.append_row(constants.SHEETS_HEADER, value_input_option="RAW")
        return worksheet


class SheetsVocabularyStore:
    """Rows: id | word | data (JSON) | user_id | created_at, header in row 1."""

    def __init__(self, worksheet: Any) -> None:
        self.worksheet = worksheet

    def _rows(self) -> List[List[str]]:
        try:
            rows = self.worksheet.get_all_values()
        except gspread.exceptions.GSpreadException as e:
            raise PersistenceError(f"Failed to read vocabulary sheet: {e}") from e
        return rows[1:] if rows else []

    def list(self) -> List[SavedEntry]:
        entries = []
        for row in self._rows():
            row = list(row) + [""] * (len(constants.SHEETS_HEADER) - len(row))
            entry_id, word, raw_data, user_id, created_at = row[:5]
            if not entry_id:
                continue
            try:
                data = json.loads(raw_data)
            except json.JSONDecodeError:
                logger.warning("Skipping vocabulary row %s: data is not JSON", entry_id)
                continue
            entries.append(SavedEntry(id=entry_id, word=word, data=data, user_id=user_id or None, created_at=created_at))
        return sorted(entries, key=lambda e: e.created_at, reverse=True)

    def insert(self, word: str, data: Dict[str, Any], user_id: Optional[str] = None) -> SavedEntry:
        entry = SavedEntry(id=_new_id(), word=word, data=data, user_id=user_id, created_at=_now_iso())
        try:
            self.worksheet.append_row(
                [entry.id, entry.word, json.dumps(data, ensure_ascii=False), entry.user_id or "", entry.created_at],
                value_input_option="RAW",
            )
        except (gspread.exceptions.GSpreadException, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save {word!r}: {e}") from e
        return entry

    def delete(self, entry_id: str) -> None:
        for offset, row in enumerate(self._rows()):
            if row and row[0] == entry_id:
                try:
                    # +2: 1-based rows and the header row
                    self.worksheet.delete_rows(offset + 2)
                except gspread.exceptions.GSpreadException as e:
                    raise PersistenceError(f"Failed to delete {entry_id!r}: {e}") from e
                return


def get_store() -> VocabularyStore:
    """Build the configured store (VOCAB_STORE=sqlite|sheets)."""
    cfg = get_config()
    if cfg["vocab_store"] != "sheets":
        return SqliteVocabularyStore(cfg["vocab_db_path"])

    spreadsheet_id = cfg["sheets_spreadsheet_id"]
    raw_sa = cfg["sheets_service_account"]
    if not spreadsheet_id or not raw_sa:
        raise PersistenceError("VOCAB_STORE=sheets needs GOOGLE_SHEETS_SPREADSHEET_ID and GOOGLE_SHEETS_SERVICE_ACCOUNT")
    try:
        service_account = json.loads(raw_sa)
    except json.JSONDecodeError as e:
        raise PersistenceError("GOOGLE_SHEETS_SERVICE_ACCOUNT is not valid JSON") from e

    try:
        worksheet = open_worksheet(spreadsheet_id, cfg["sheets_worksheet"], service_account)
    except (gspread.exceptions.GSpreadException, ValueError) as e:
        raise PersistenceError(f"Failed to open vocabulary sheet: {e}") from e
    logger.info("Vocabulary store: Google Sheets (%s)", cfg["sheets_worksheet"])
    return SheetsVocabularyStore(worksheet)
