"""Database bootstrapping utilities."""

from __future__ import annotations

import logging
import os

from sqlalchemy.orm import Session

from app.packages.assets.core.constants import VOLUME_TYPE_LOCAL
from app.packages.assets.crud.volume import volume_crud
from app.packages.assets.db import session as db_session
from app.packages.assets.models.asset import Asset  # noqa: F401 - ensure table creation in tests
from app.packages.assets.models.base import Base
from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.models.volume import Volume

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all database tables if they do not exist and seed baseline data."""
    Base.metadata.create_all(bind=db_session.engine)

    session = db_session.SessionLocal()
    try:
        _seed_default_volume_if_needed(session)
        session.commit()
    except Exception:  # pragma: no cover - initialization failures should surface
        session.rollback()
        logger.exception("Failed to seed default data during database initialization")
        raise
    finally:
        session.close()


def _seed_default_volume_if_needed(db: Session) -> None:
    """若配置了 LOCAL_VOLUME_ROOT 且当前无任何存储卷，则创建默认本地卷及其根目录记录。

    该逻辑幂等：仅当 volumes 为空时触发。
    """
    if volume_crud.count(db) > 0:
        return
    local_root = os.getenv("LOCAL_VOLUME_ROOT")
    if not local_root:
        return
    volume = Volume(name="本地存储 (默认)", handle="local", type=VOLUME_TYPE_LOCAL, local_root_path=local_root)
    db.add(volume)
    db.flush()
    db.add(VolumeFolder(parent_id=None, volume_id=volume.id, name=volume.name, path=""))
    db.flush()
    logger.info("Seeded default local volume %s at %s", volume.id, local_root)
