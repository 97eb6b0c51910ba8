"""测试夹具：为 pytest 提供数据库、存储卷与客户端的共享配置。"""

import os
import tempfile
import uuid
from pathlib import Path
from typing import Generator

TEST_DB_PATH = os.path.join(os.path.dirname(__file__), "test.db")
TEST_DATABASE_URL = f"sqlite:///{TEST_DB_PATH}"
TEST_TEMP_UPLOADS = tempfile.mkdtemp(prefix="asset_temp_uploads_")

os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("TEMP_UPLOADS_PATH", TEST_TEMP_UPLOADS)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from app.main import app  # noqa: E402
from app.packages.assets.core.constants import VOLUME_TYPE_LOCAL  # noqa: E402
from app.packages.assets.core.dependencies import get_db  # noqa: E402
from app.packages.assets.db import session as db_session  # noqa: E402
from app.packages.assets.db.init_db import init_db  # noqa: E402
from app.packages.assets.models.base import Base  # noqa: E402
from app.packages.assets.models.volume import Volume  # noqa: E402
from app.packages.assets.services.folder_paths import FolderPathResolver  # noqa: E402
from app.packages.assets.services.folder_store import FolderStore  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理。"""
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)

    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal

    Base.metadata.create_all(bind=engine)
    init_db()
    yield

    engine.dispose()
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db_session_fixture: Session) -> FolderStore:
    return FolderStore(db_session_fixture)


@pytest.fixture()
def local_volume(db_session_fixture: Session, tmp_path: Path) -> Volume:
    """每个用例一个独立的本地存储卷（根目录位于 tmp_path 下），并带有根目录记录。"""
    root = tmp_path / "volume"
    root.mkdir()
    suffix = uuid.uuid4().hex[:8]
    volume = Volume(name=f"测试卷-{suffix}", handle=f"local-{suffix}", type=VOLUME_TYPE_LOCAL, local_root_path=str(root))
    db_session_fixture.add(volume)
    db_session_fixture.commit()
    db_session_fixture.refresh(volume)
    FolderPathResolver(FolderStore(db_session_fixture)).ensure_top_folder(volume)
    return volume


@pytest.fixture()
def client(db_session_fixture):
    """构建 FastAPI TestClient，并注入测试专用的数据库依赖。"""
    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
