import io
from pathlib import Path

from alembic import command
from alembic.config import Config

SCRIPT_LOCATION = Path(__file__).resolve().parents[1] / "backend" / "alembic"


def test_offline_upgrade_renders_all_tables():
    buffer = io.StringIO()
    cfg = Config(output_buffer=buffer)
    cfg.set_main_option("script_location", str(SCRIPT_LOCATION))

    command.upgrade(cfg, "head", sql=True)

    sql = buffer.getvalue()
    for table in ("users", "leave_categories", "leave_requests"):
        assert f"CREATE TABLE {table}" in sql
    assert "ON DELETE RESTRICT" in sql
