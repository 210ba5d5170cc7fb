from __future__ import annotations

import logging
import os
from pathlib import Path

from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)


def _default_db_url() -> str:
    # Keep data out of git by default.
    data_dir = Path(os.environ.get("SEAT_MAP_DATA_DIR", Path.cwd() / "data"))
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / "seat_maps.db"
    return f"sqlite:///{db_path}"


def _db_url() -> str:
    return os.environ.get("SEAT_MAP_DB_URL") or _default_db_url()


def _connect_args(url: str) -> dict:
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


_url = _db_url()
engine = create_engine(_url, echo=False, connect_args=_connect_args(_url))


def configure_logging() -> None:
    level = getattr(logging, os.environ.get("SEAT_MAP_LOG_LEVEL", "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def init_db() -> None:
    from . import models  # noqa: F401 - ensure models are registered

    SQLModel.metadata.create_all(engine)
    logger.debug("database ready at %s", engine.url)


def get_session() -> Session:
    return Session(engine)
