"""Sequential SQL migration runner and seed loader.

Migrations are plain `.sql` files applied in filename order, each exactly
once, each inside its own transaction. Applied names are recorded in the
`_migrations` bookkeeping table.
"""
import logging
import os

logger = logging.getLogger(__name__)

MIGRATIONS_TABLE_SQL = (
    "CREATE TABLE IF NOT EXISTS _migrations ("
    "id INTEGER PRIMARY KEY, "
    "name TEXT UNIQUE NOT NULL, "
    "appliedAt TEXT NOT NULL)"
)


def ensure_migrations_table(conn):
    conn.execute(MIGRATIONS_TABLE_SQL)


def list_sql_files(directory):
    """`.sql` filenames in the directory, sorted ascending."""
    return sorted(f for f in os.listdir(directory) if f.endswith('.sql'))


def split_statements(sql):
    """Split a migration script into statements on `;`.

    Fragments are trimmed; empty ones and ones starting with `--` are dropped.
    The split is purely textual, so a `;` inside a string literal or a
    trigger body breaks the statement apart.
    """
    statements = []
    for fragment in sql.split(';'):
        stmt = fragment.strip()
        if stmt and not stmt.startswith('--'):
            statements.append(stmt)
    return statements


def is_applied(conn, name):
    row = conn.execute("SELECT name FROM _migrations WHERE name = ?", (name,)).fetchone()
    return row is not None


def applied_migrations(conn):
    rows = conn.execute("SELECT name, appliedAt FROM _migrations ORDER BY id").fetchall()
    return [(row[0], row[1]) for row in rows]


def apply_migrations(conn, migrations_dir):
    """Apply every pending migration file in order.

    The connection must be in autocommit mode (isolation_level=None).
    A failing statement rolls back its file and the error propagates;
    files committed earlier in the run stay applied.

    Returns:
        list of migration names applied by this call
    """
    ensure_migrations_table(conn)
    applied = []

    for name in list_sql_files(migrations_dir):
        if is_applied(conn, name):
            logger.info(f"Migration already applied: {name}")
            continue

        with open(os.path.join(migrations_dir, name), encoding='utf-8') as fh:
            sql = fh.read()
        logger.info(f"Applying migration: {name}")

        conn.execute("BEGIN")
        try:
            for statement in split_statements(sql):
                conn.execute(statement)
            conn.execute(
                "INSERT INTO _migrations (name, appliedAt) "
                "VALUES (?, strftime('%Y-%m-%dT%H:%M:%fZ','now'))",
                (name,),
            )
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            logger.exception(f"Migration failed: {name}")
            raise

        logger.info(f"Migration applied successfully: {name}")
        applied.append(name)

    return applied


def apply_seeds(conn, seeds_dir):
    """Run every seed file as one script. Seeds carry no bookkeeping."""
    seeded = []
    for name in list_sql_files(seeds_dir):
        logger.info(f"Applying seed: {name}")
        with open(os.path.join(seeds_dir, name), encoding='utf-8') as fh:
            conn.executescript(fh.read())
        seeded.append(name)
    return seeded


def initialize_database(db, migrations_dir, seeds_dir=None, enable_seeds=False):
    """Start-up chain: migrations, then seeds. Any error propagates."""
    conn = db.connection()

    logger.info("Applying migrations...")
    if os.path.isdir(migrations_dir):
        apply_migrations(conn, migrations_dir)
        logger.info("Migrations completed successfully")
    else:
        logger.warning(f"[Migrations] Directory not found, skipping: {migrations_dir}")

    logger.info(f"Tables created: {db.table_names()}")

    if enable_seeds:
        if seeds_dir and os.path.isdir(seeds_dir):
            apply_seeds(conn, seeds_dir)
            logger.info("Seeds completed successfully")
        else:
            logger.warning(f"[Seeds] Directory not found, skipping: {seeds_dir}")
    else:
        logger.info("[Seeds] Skipped by configuration (SEED_ON_START=false)")

    logger.info("Database initialization complete")
