from __future__ import annotations

from flask import current_app
from sqlalchemy import inspect, text

from farmcms.extensions import db


def close_db(_: Exception | None = None) -> None:
    db.session.remove()


def ensure_schema() -> None:
    """Create missing tables and add columns that older databases lack.

    Runs once at startup as a development convenience so the app works against
    a fresh database or one created before newer columns existed. Only nullable
    columns without server defaults are added; anything else needs a migration.
    """
    engine = db.engine
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())

    missing = [t for t in db.metadata.sorted_tables if t.name not in existing_tables]
    if missing:
        current_app.logger.info(f"Creating tables: {', '.join(t.name for t in missing)}")
        db.metadata.create_all(bind=engine, tables=missing)

    preparer = engine.dialect.identifier_preparer
    with engine.begin() as conn:
        for table in db.metadata.sorted_tables:
            if table.name not in existing_tables:
                continue
            present = {col['name'] for col in inspector.get_columns(table.name)}
            for column in table.columns:
                if column.name in present or not column.nullable:
                    continue
                col_type = column.type.compile(dialect=engine.dialect)
                current_app.logger.info(f"Adding column {table.name}.{column.name}")
                conn.execute(text(
                    f"ALTER TABLE {preparer.quote(table.name)} "
                    f"ADD COLUMN {preparer.quote(column.name)} {col_type}"
                ))


__all__ = ["close_db", "ensure_schema"]
