"""
Unit Tests for the SQL migration runner and seed loader.
"""
import os
import sqlite3
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config import MIGRATIONS_DIR, SEEDS_DIR
from app.db.connection import Database
from app.db.migrations import (
    apply_migrations, apply_seeds, applied_migrations, initialize_database,
    list_sql_files, split_statements,
)


def _write(directory, name, sql):
    path = directory / name
    path.write_text(sql, encoding='utf-8')
    return path


@pytest.fixture
def database(tmp_path):
    db = Database(str(tmp_path / "migrations.db"))
    yield db
    db.close()


@pytest.fixture
def migrations_dir(tmp_path):
    directory = tmp_path / "migrations"
    directory.mkdir()
    return directory


def _count(db, table):
    return db.get(f"SELECT COUNT(*) AS n FROM {table}")['n']


# ═══════════════════════════════════════════════════════════════
# Statement Splitting
# ═══════════════════════════════════════════════════════════════

class TestSplitStatements:
    def test_splits_and_trims(self):
        sql = "CREATE TABLE a (id INTEGER);\n\n  INSERT INTO a VALUES (1) ;\n"
        assert split_statements(sql) == ["CREATE TABLE a (id INTEGER)", "INSERT INTO a VALUES (1)"]

    def test_drops_empty_fragments(self):
        assert split_statements(";;  ;\n") == []

    def test_drops_fragments_starting_with_comment(self):
        sql = "SELECT 1;\n-- trailing note\n;SELECT 2"
        assert split_statements(sql) == ["SELECT 1", "SELECT 2"]

    def test_leading_comment_swallows_its_statement(self):
        # The comment and the statement share one fragment, which starts with --
        sql = "-- header\nCREATE TABLE a (id INTEGER);\nCREATE TABLE b (id INTEGER);"
        assert split_statements(sql) == ["CREATE TABLE b (id INTEGER)"]

    def test_semicolon_inside_literal_is_split(self):
        sql = "INSERT INTO t VALUES ('a;b');"
        assert split_statements(sql) == ["INSERT INTO t VALUES ('a", "b')"]

    def test_list_sql_files_sorted(self, migrations_dir):
        _write(migrations_dir, "010_b.sql", "")
        _write(migrations_dir, "002_a.sql", "")
        _write(migrations_dir, "notes.txt", "")
        assert list_sql_files(str(migrations_dir)) == ["002_a.sql", "010_b.sql"]


# ═══════════════════════════════════════════════════════════════
# Migration Runner
# ═══════════════════════════════════════════════════════════════

class TestApplyMigrations:
    def test_applies_in_filename_order(self, database, migrations_dir):
        _write(migrations_dir, "002_fill.sql", "INSERT INTO a (id) VALUES (1);")
        _write(migrations_dir, "001_create.sql", "CREATE TABLE a (id INTEGER PRIMARY KEY);")
        applied = apply_migrations(database.connection(), str(migrations_dir))
        assert applied == ["001_create.sql", "002_fill.sql"]
        assert _count(database, "a") == 1

    def test_running_twice_applies_once(self, database, migrations_dir):
        _write(migrations_dir, "001_create.sql",
               "CREATE TABLE a (id INTEGER PRIMARY KEY);\nINSERT INTO a (id) VALUES (1);")
        _write(migrations_dir, "002_more.sql", "CREATE TABLE b (x TEXT);\nINSERT INTO b VALUES ('x');")

        conn = database.connection()
        first = apply_migrations(conn, str(migrations_dir))
        second = apply_migrations(conn, str(migrations_dir))

        assert len(first) == 2
        assert second == []
        assert _count(database, "_migrations") == 2
        assert _count(database, "a") == 1
        assert _count(database, "b") == 1

    def test_bookkeeping_rows(self, database, migrations_dir):
        _write(migrations_dir, "001_create.sql", "CREATE TABLE a (id INTEGER);")
        conn = database.connection()
        apply_migrations(conn, str(migrations_dir))
        rows = applied_migrations(conn)
        assert [name for name, _ in rows] == ["001_create.sql"]
        assert rows[0][1].endswith("Z")

    def test_failed_migration_rolls_back_and_stops(self, database, migrations_dir):
        _write(migrations_dir, "001_ok.sql", "CREATE TABLE a (id INTEGER);")
        _write(migrations_dir, "002_broken.sql",
               "CREATE TABLE c (id INTEGER);\nINSERT INTO missing_table VALUES (1);")
        _write(migrations_dir, "003_later.sql", "CREATE TABLE d (id INTEGER);")

        conn = database.connection()
        with pytest.raises(sqlite3.OperationalError):
            apply_migrations(conn, str(migrations_dir))

        names = [name for name, _ in applied_migrations(conn)]
        assert names == ["001_ok.sql"]
        tables = database.table_names()
        assert "a" in tables
        assert "c" not in tables
        assert "d" not in tables

    def test_rerun_after_fix_resumes(self, database, migrations_dir):
        _write(migrations_dir, "001_ok.sql", "CREATE TABLE a (id INTEGER);")
        broken = _write(migrations_dir, "002_broken.sql", "INSERT INTO nope VALUES (1);")
        conn = database.connection()
        with pytest.raises(sqlite3.OperationalError):
            apply_migrations(conn, str(migrations_dir))

        broken.write_text("CREATE TABLE nope (id INTEGER);", encoding='utf-8')
        assert apply_migrations(conn, str(migrations_dir)) == ["002_broken.sql"]
        assert _count(database, "_migrations") == 2

    def test_project_migrations_create_schema(self, database):
        apply_migrations(database.connection(), MIGRATIONS_DIR)
        tables = database.table_names()
        for table in ("_migrations", "users", "simulations", "simulation_spins"):
            assert table in tables


# ═══════════════════════════════════════════════════════════════
# Seeds and Start-up Chain
# ═══════════════════════════════════════════════════════════════

class TestInitializeDatabase:
    def test_seeds_are_idempotent(self, database):
        conn = database.connection()
        apply_migrations(conn, MIGRATIONS_DIR)
        apply_seeds(conn, SEEDS_DIR)
        apply_seeds(conn, SEEDS_DIR)
        assert database.get("SELECT uid FROM users WHERE uid = ?", ("demo-user",)) is not None
        assert _count(database, "users") == 2

    def test_missing_migrations_dir_is_skipped(self, database, tmp_path):
        initialize_database(database, str(tmp_path / "does-not-exist"))
        assert "_migrations" not in database.table_names()

    def test_seeds_skipped_when_disabled(self, database):
        initialize_database(database, MIGRATIONS_DIR, SEEDS_DIR, enable_seeds=False)
        assert _count(database, "users") == 0

    def test_seeds_applied_when_enabled(self, database):
        initialize_database(database, MIGRATIONS_DIR, SEEDS_DIR, enable_seeds=True)
        assert _count(database, "users") == 2

    def test_errors_propagate(self, database, migrations_dir):
        _write(migrations_dir, "001_bad.sql", "THIS IS NOT SQL;")
        with pytest.raises(sqlite3.OperationalError):
            initialize_database(database, str(migrations_dir))
