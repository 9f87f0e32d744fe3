from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from app.db import describe_db
from app.logging_utils import configure_logging

logger = logging.getLogger("birthday_init_db")


def main() -> None:
    configure_logging()
    project_root = Path(__file__).resolve().parents[1]
    alembic_ini = project_root / "alembic.ini"
    if not alembic_ini.exists():
        raise RuntimeError(f"alembic.ini not found at: {alembic_ini}")

    cfg = Config(str(alembic_ini))
    cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(cfg, "head")
    logger.info("DB migrated to head: %s", describe_db())


if __name__ == "__main__":
    main()
