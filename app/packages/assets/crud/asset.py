"""资源记录 CRUD。"""

from __future__ import annotations

from typing import Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.packages.assets.crud.base import CRUDBase
from app.packages.assets.models.asset import Asset


class CRUDAsset(CRUDBase[Asset]):
    def list_by_folder_ids(self, db: Session, folder_ids: Iterable[int]) -> List[Asset]:
        ids = list(folder_ids)
        if not ids:
            return []
        return self.query(db).filter(Asset.folder_id.in_(ids)).order_by(Asset.id.asc()).all()

    def filename_taken(self, db: Session, *, folder_id: int, filename: str) -> bool:
        """同一文件夹中是否已有同名资源（忽略大小写，不含软删除记录）。"""
        query = (
            self.query(db)
            .with_entities(Asset.id)
            .filter(Asset.folder_id == folder_id)
            .filter(func.lower(Asset.filename) == filename.lower())
        )
        return query.first() is not None


asset_crud = CRUDAsset(Asset)
