"""依赖注入模块：封装 FastAPI 中复用度高的依赖函数。"""

from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from app.packages.assets.db.session import SessionLocal
from app.packages.assets.services.folder_store import FolderStore


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_folder_store(db: Session = Depends(get_db)) -> Generator[FolderStore, None, None]:
    """每个请求一个文件夹存储实例，请求结束时清空其缓存。"""
    store = FolderStore(db)
    try:
        yield store
    finally:
        store.clear()
