"""资源持久化协作者：目录删除时按需删除资源文件并移除资源记录。"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy.orm import Session

from app.packages.assets.core.exceptions import AppException
from app.packages.assets.core.logger import logger
from app.packages.assets.crud.asset import asset_crud
from app.packages.assets.crud.folder import folder_crud
from app.packages.assets.models.asset import Asset
from app.packages.assets.services.volume_service import VolumeService


class AssetPersistence(Protocol):
    def delete_asset(self, asset: Asset, keep_file: bool) -> None:
        ...


class AssetRecordPersistence:
    """基于数据库记录与存储卷后端的默认实现；记录删除不自动提交，由调用方统一提交。"""

    def __init__(self, db: Session, volumes: VolumeService):
        self.db = db
        self.volumes = volumes

    def delete_asset(self, asset: Asset, keep_file: bool) -> None:
        if not keep_file:
            self._delete_file(asset)
        asset_crud.hard_delete(self.db, asset, auto_commit=False)

    def _delete_file(self, asset: Asset) -> None:
        folder = folder_crud.get(self.db, asset.folder_id)
        if folder is None:
            logger.warning("Asset %s points to missing folder %s, file left in place", asset.id, asset.folder_id)
            return
        try:
            self.volumes.backend_for_folder(folder).delete_file(f"{folder.path}{asset.filename}")
        except AppException:
            logger.warning("Failed to delete file of asset %s", asset.id, exc_info=True)
