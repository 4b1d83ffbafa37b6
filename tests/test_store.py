# Tests for the vocabulary stores (SQLite file and a fake Sheets worksheet).

import json

import gspread
import pytest

import store as store_module
from conftest import make_detail
from errors import PersistenceError
from store import SheetsVocabularyStore, SqliteVocabularyStore


@pytest.fixture
def sqlite_store(tmp_path):
    return SqliteVocabularyStore(tmp_path / "vocab.db")


def test_sqlite_insert_then_list_returns_data_unchanged(sqlite_store):
    data = make_detail("谢谢")
    data["custom"] = {"nested": ["値", 1, None]}

    entry = sqlite_store.insert("谢谢", data, user_id="user-1")
    listed = sqlite_store.list()

    assert [e.id for e in listed] == [entry.id]
    assert listed[0].word == "谢谢"
    assert listed[0].data == data
    assert listed[0].user_id == "user-1"


def test_sqlite_list_is_newest_first(sqlite_store):
    for word in ("一", "二", "三"):
        sqlite_store.insert(word, make_detail(word))
    assert [e.word for e in sqlite_store.list()] == ["三", "二", "一"]


def test_sqlite_delete_removes_exactly_one(sqlite_store):
    first = sqlite_store.insert("谢谢", make_detail("谢谢"))
    second = sqlite_store.insert("谢谢", make_detail("谢谢"))

    sqlite_store.delete(first.id)

    assert [e.id for e in sqlite_store.list()] == [second.id]


def test_sqlite_delete_unknown_id_is_noop(sqlite_store):
    sqlite_store.insert("谢谢", make_detail("谢谢"))
    sqlite_store.delete("missing")
    assert len(sqlite_store.list()) == 1


def test_sqlite_persists_across_instances(tmp_path):
    path = tmp_path / "vocab.db"
    SqliteVocabularyStore(path).insert("加油", make_detail("加油"))
    assert [e.word for e in SqliteVocabularyStore(path).list()] == ["加油"]


def test_sqlite_unserializable_data_is_persistence_error(sqlite_store):
    with pytest.raises(PersistenceError):
        sqlite_store.insert("谢谢", {"bad": object()})
    assert sqlite_store.list() == []


def test_sqlite_unopenable_path_is_persistence_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    with pytest.raises(PersistenceError):
        SqliteVocabularyStore(blocker / "vocab.db")


class FakeWorksheet:
    def __init__(self, rows=None, fail=False):
        self.rows = [list(store_module.constants.SHEETS_HEADER)] + [list(r) for r in (rows or [])]
        self.fail = fail

    def _check(self):
        if self.fail:
            raise gspread.exceptions.GSpreadException("boom")

    def get_all_values(self):
        self._check()
        return [list(r) for r in self.rows]

    def append_row(self, values, value_input_option=None):
        self._check()
        self.rows.append([str(v) for v in values])

    def delete_rows(self, index):
        self._check()
        del self.rows[index - 1]


def test_sheets_round_trip_and_order():
    ws = FakeWorksheet()
    sheets = SheetsVocabularyStore(ws)

    first = sheets.insert("谢谢", make_detail("谢谢"), user_id="u")
    second = sheets.insert("加油", make_detail("加油"))

    listed = sheets.list()
    assert [e.id for e in listed] == [second.id, first.id]
    assert listed[1].data == make_detail("谢谢")
    assert listed[1].user_id == "u"
    assert listed[0].user_id is None
    assert json.loads(ws.rows[1][2])["word"] == "谢谢"


def test_sheets_delete_removes_matching_row():
    ws = FakeWorksheet()
    sheets = SheetsVocabularyStore(ws)
    keep = sheets.insert("谢谢", make_detail("谢谢"))
    drop = sheets.insert("加油", make_detail("加油"))

    sheets.delete(drop.id)

    assert [e.id for e in sheets.list()] == [keep.id]
    assert ws.rows[0] == store_module.constants.SHEETS_HEADER


def test_sheets_skips_bad_and_short_rows():
    ws = FakeWorksheet(rows=[
        ["a", "谢谢", json.dumps(make_detail("谢谢")), "", "2024-01-01T00:00:00+00:00"],
        ["b", "坏", "{not json", "", "2024-01-02T00:00:00+00:00"],
        ["", "空"],
        ["c", "短", "{}"],
    ])
    entries = SheetsVocabularyStore(ws).list()
    assert sorted(e.id for e in entries) == ["a", "c"]


def test_sheets_errors_become_persistence_error():
    sheets = SheetsVocabularyStore(FakeWorksheet(fail=True))
    with pytest.raises(PersistenceError):
        sheets.list()
    with pytest.raises(PersistenceError):
        sheets.insert("谢谢", make_detail("谢谢"))


def test_get_store_defaults_to_sqlite(monkeypatch, tmp_path):
    monkeypatch.setenv("VOCAB_DB_PATH", str(tmp_path / "v.db"))
    assert isinstance(store_module.get_store(), SqliteVocabularyStore)


def test_get_store_sheets_needs_settings(monkeypatch):
    monkeypatch.setenv("VOCAB_STORE", "sheets")
    with pytest.raises(PersistenceError):
        store_module.get_store()


def test_get_store_sheets_rejects_bad_service_account(monkeypatch):
    monkeypatch.setenv("VOCAB_STORE", "sheets")
    monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-id")
    monkeypatch.setenv("GOOGLE_SHEETS_SERVICE_ACCOUNT", "{not json")
    with pytest.raises(PersistenceError):
        store_module.get_store()


def test_get_store_sheets_opens_worksheet(monkeypatch):
    ws = FakeWorksheet()
    opened = {}

    def fake_open(spreadsheet_id, name, service_account):
        opened.update(id=spreadsheet_id, name=name, sa=service_account)
        return ws

    monkeypatch.setattr(store_module, "open_worksheet", fake_open)
    monkeypatch.setenv("VOCAB_STORE", "sheets")
    monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-id")
    monkeypatch.setenv("GOOGLE_SHEETS_SERVICE_ACCOUNT", '{"type": "service_account"}')

    result = store_module.get_store()

    assert isinstance(result, SheetsVocabularyStore)
    assert result.worksheet is ws
    assert opened == {"id": "sheet-id", "name": "vocabulary", "sa": {"type": "service_account"}}
