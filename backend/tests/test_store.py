"""Tests for the DuckDB chat store and the error mapping helpers."""
import pytest

from app.errors import ValidationError, format_errors
from app.messages import repository
from app.messages.schemas import status_notice
from app.store import ChatDatabase


class TestChatDatabase:

    def test_schema_created(self, db):
        tables = {row[0] for row in db.execute("SELECT table_name FROM information_schema.tables")}
        assert {"participants", "messages"} <= tables

    def test_transaction_commits(self, db):
        with db.transaction() as conn:
            conn.execute(
                "INSERT INTO participants (name_key, name, last_status) VALUES ('maria', 'Maria', 1)"
            )
        assert db.execute("SELECT name FROM participants") == [("Maria",)]

    def test_transaction_rolls_back_on_error(self, db):
        with pytest.raises(RuntimeError):
            with db.transaction() as conn:
                conn.execute(
                    "INSERT INTO participants (name_key, name, last_status) VALUES ('maria', 'Maria', 1)"
                )
                raise RuntimeError("abort")
        assert db.execute("SELECT name FROM participants") == []

    def test_case_folded_name_is_unique(self, db):
        db.execute("INSERT INTO participants (name_key, name, last_status) VALUES ('maria', 'Maria', 1)")
        with pytest.raises(Exception):
            db.execute("INSERT INTO participants (name_key, name, last_status) VALUES ('maria', 'MARIA', 2)")

    def test_close_is_idempotent(self):
        database = ChatDatabase(":memory:")
        database.close()
        database.close()
        with pytest.raises(RuntimeError):
            database.connection

    def test_file_database_survives_reopen(self, tmp_path):
        path = str(tmp_path / "chat.duckdb")
        database = ChatDatabase(path)
        with database.transaction() as conn:
            repository.insert_messages(conn, [status_notice("Maria", "entra na sala...", "12:00:00")])
        database.close()

        reopened = ChatDatabase(path)
        try:
            messages = repository.fetch_visible(reopened.connection, "anyone")
            assert [m.sender for m in messages] == ["Maria"]
        finally:
            reopened.close()

    def test_bulk_insert_keeps_order(self, db):
        notices = [status_notice(name, "sai da sala...", "12:00:00") for name in ("c1", "c2", "c3")]
        with db.transaction() as conn:
            assert repository.insert_messages(conn, notices) == 3
        listed = repository.fetch_visible(db.connection, "anyone")
        assert [m.sender for m in listed] == ["c1", "c2", "c3"]


class TestErrorFormatting:

    def test_format_errors_drops_request_location(self):
        errors = [
            {"loc": ("body", "name"), "msg": "Field required"},
            {"loc": ("query", "limit"), "msg": "Input should be a valid integer"},
            {"loc": (), "msg": "Bad input"},
        ]
        assert format_errors(errors) == [
            "name: Field required",
            "limit: Input should be a valid integer",
            "Bad input",
        ]

    def test_validation_error_content_is_list(self):
        exc = ValidationError(["name: too short"])
        assert exc.to_content() == ["name: too short"]
        assert exc.status_code == 422
