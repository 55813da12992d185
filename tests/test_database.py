# tests/test_database.py
from otbooking import database
from otbooking.config import Settings


def test_sqlite_schema_is_built_from_the_models(monkeypatch):
    calls = []
    monkeypatch.setattr(database, "create_tables", lambda: calls.append("create_all"))
    assert database.prepare_schema() is True
    assert calls == ["create_all"]


def test_postgres_schema_is_left_to_migrations(monkeypatch):
    calls = []
    postgres = Settings(DATABASE_URL="postgresql://ot:secret@db/otbooking", SECRET_KEY="k" * 40)
    monkeypatch.setattr(database, "get_settings", lambda: postgres)
    monkeypatch.setattr(database, "create_tables", lambda: calls.append("create_all"))
    assert database.prepare_schema() is False
    assert calls == []
