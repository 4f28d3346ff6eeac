"""Tests for the SQLite repositories (F2)."""

import sqlite3

import pytest

from estudio.core.progress import ProgressRecord, ProgressUpdate, apply_update
from estudio.core.progress_store import ProgressStore
from estudio.core.questions import BuiltinSetError, Question
from estudio.db import database, progress_repository, question_sets_repository
from estudio.db.database import StorageError, get_db, init_db


def _record(*levels: int) -> ProgressRecord:
    record = ProgressRecord()
    for level in levels:
        record = apply_update(record, ProgressUpdate(confidence=level))
    return record


QUESTIONS = [
    Question(numero=1, seccion="A", pregunta="¿Uno?"),
    Question(numero=2, seccion="B", pregunta="¿Dos?"),
]


class TestInitDb:
    """Tests for schema creation."""

    def test_tables_created(self, db):
        with get_db() as conn:
            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        assert {"question_sets", "progress"} <= tables

    def test_init_is_idempotent(self, db):
        init_db(db)
        init_db(db)

    def test_confidence_check_constraint(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            with get_db() as conn:
                conn.execute(
                    "INSERT INTO progress (set_id, question_id, ultima_confianza) "
                    "VALUES ('s', 1, 9)"
                )


class TestProgressRepository:
    """Tests for progress_repository."""

    def test_upsert_and_get(self, db):
        stored = progress_repository.upsert_progress("s", 1, _record(4, 2))

        assert stored.veces_mostrada == 2
        assert stored.confianza_promedio == 3.0
        assert progress_repository.get_progress("s", 1) == stored

    def test_get_missing(self, db):
        assert progress_repository.get_progress("s", 99) is None

    def test_upsert_overwrites(self, db):
        progress_repository.upsert_progress("s", 1, _record(1))
        progress_repository.upsert_progress("s", 1, _record(1, 5))

        assert progress_repository.get_progress("s", 1).confianza_sum == 6

    def test_marked_roundtrip_as_bool(self, db):
        progress_repository.upsert_progress("s", 1, ProgressRecord(marcada_para_repaso=True))
        assert progress_repository.get_progress("s", 1).marcada_para_repaso is True

    def test_load_scoped_to_set(self, db):
        progress_repository.upsert_progress("s", 1, _record(3))
        progress_repository.upsert_progress("s", 2, _record(4))
        progress_repository.upsert_progress("otro", 1, _record(5))

        records = progress_repository.load_progress("s")

        assert sorted(records) == [1, 2]
        assert records[2].ultima_confianza == 4

    def test_delete_progress(self, db):
        progress_repository.upsert_progress("s", 1, _record(3))
        progress_repository.upsert_progress("s", 2, _record(4))

        assert progress_repository.delete_progress("s") == 2
        assert progress_repository.load_progress("s") == {}

    def test_corrupt_schema_raises_storage_error(self, db):
        with get_db() as conn:
            conn.execute("DROP TABLE progress")

        with pytest.raises(StorageError) as exc_info:
            progress_repository.load_progress("s")
        assert exc_info.value.operation == "load_progress"

    def test_unusable_db_directory_raises_storage_error(self, db, tmp_path, monkeypatch):
        blocker = tmp_path / "ocupado"
        blocker.write_text("no es un directorio", encoding="utf-8")
        monkeypatch.setattr(database, "_db_path", blocker / "db" / "estudio.db")

        with pytest.raises(StorageError) as exc_info:
            progress_repository.load_progress("s")
        assert isinstance(exc_info.value.cause, OSError)

    def test_store_degrades_when_db_directory_unusable(self, db, tmp_path, monkeypatch):
        blocker = tmp_path / "ocupado"
        blocker.write_text("no es un directorio", encoding="utf-8")
        monkeypatch.setattr(database, "_db_path", blocker / "db" / "estudio.db")

        store = ProgressStore()

        assert store.load("s") == {}
        assert store.update("s", 1, ProgressUpdate(confidence=3)) is None


class TestQuestionSetsRepository:
    """Tests for question_sets_repository."""

    def test_save_and_load(self, db):
        saved = question_sets_repository.save_question_set("mio", "Mío", QUESTIONS)

        assert saved.set_id == "mio"
        assert saved.created_at

        loaded = question_sets_repository.load_question_set("mio")
        assert loaded.name == "Mío"
        assert loaded.questions == QUESTIONS

    def test_load_missing(self, db):
        assert question_sets_repository.load_question_set("nada") is None

    def test_builtin_loaded_from_json(self, db, sets_dir):
        question_set = question_sets_repository.load_question_set("incluido", sets_dir)

        assert question_set.builtin is True
        assert question_set.name == "Incluido"
        assert [q.numero for q in question_set.questions] == [1, 2]

    def test_list_builtin_first(self, db, sets_dir):
        question_sets_repository.save_question_set("mio", "Mío", QUESTIONS)

        summaries = question_sets_repository.list_question_sets(sets_dir)

        assert [s.set_id for s in summaries] == ["incluido", "mio"]
        assert summaries[0].builtin is True
        assert summaries[1].question_count == 2

    def test_list_without_sets_dir(self, db):
        assert question_sets_repository.list_question_sets() == []

    def test_builtin_is_read_only(self, db, sets_dir):
        with pytest.raises(BuiltinSetError):
            question_sets_repository.save_question_set("incluido", "X", QUESTIONS, sets_dir)
        with pytest.raises(BuiltinSetError):
            question_sets_repository.delete_question_set("incluido", sets_dir)

    def test_delete_cascades_to_progress(self, db):
        question_sets_repository.save_question_set("mio", "Mío", QUESTIONS)
        progress_repository.upsert_progress("mio", 1, _record(5))

        assert question_sets_repository.delete_question_set("mio") is True
        assert question_sets_repository.load_question_set("mio") is None
        assert progress_repository.load_progress("mio") == {}

    def test_delete_missing(self, db):
        assert question_sets_repository.delete_question_set("nada") is False

    def test_unreadable_builtin_skipped(self, db, sets_dir):
        (sets_dir / "roto.json").write_text("{no es json", encoding="utf-8")

        summaries = question_sets_repository.list_question_sets(sets_dir)

        assert [s.set_id for s in summaries] == ["incluido"]

    def test_corrupt_questions_column_skipped_in_list(self, db, sets_dir):
        question_sets_repository.save_question_set("mio", "Mío", QUESTIONS)
        with get_db() as conn:
            conn.execute(
                "INSERT INTO question_sets (set_id, name, questions) VALUES (?, ?, ?)",
                ("roto", "Roto", "{no es json"),
            )

        summaries = question_sets_repository.list_question_sets(sets_dir)

        assert [s.set_id for s in summaries] == ["incluido", "mio"]

    def test_corrupt_questions_column_loads_as_none(self, db):
        with get_db() as conn:
            conn.execute(
                "INSERT INTO question_sets (set_id, name, questions) VALUES (?, ?, ?)",
                ("roto", "Roto", "{no es json"),
            )

        assert question_sets_repository.load_question_set("roto") is None
        assert question_sets_repository.list_question_sets() == []
