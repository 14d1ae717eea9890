from sqlalchemy import text
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from ess.db import database


def test_pytest_runtime_uses_in_memory_sqlite():
    assert database._is_pytest_runtime() is True
    if not database.get_settings().database_url:
        assert database.DATABASE_URL == "sqlite+pysqlite:///:memory:"


def test_build_engine_sqlite_options(tmp_path):
    memory = database.build_engine("sqlite+pysqlite:///:memory:")
    assert isinstance(memory.pool, StaticPool)

    on_disk = database.build_engine(f"sqlite:///{tmp_path / 'x.db'}")
    assert not isinstance(on_disk.pool, StaticPool)
    with on_disk.connect() as conn:
        assert conn.execute(text("select 1")).scalar() == 1
    memory.dispose()
    on_disk.dispose()


def test_get_db_yields_and_closes_session():
    gen = database.get_db()
    db = next(gen)
    assert isinstance(db, Session)
    assert db.bind is database.engine
    gen.close()
