"""文件夹变更服务：创建、重命名、移动与删除文件夹。

物理目录操作先于数据库写入：物理操作失败时不会留下任何记录变更。
重命名与移动会级联改写全部后代的 path，整个改写在同一事务内提交；
若此时数据库写入失败，物理目录已经变动，只能记录错误日志并抛出 ``StorageError``。
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set, Union

from sqlalchemy.exc import SQLAlchemyError

from app.packages.assets.core.exceptions import ConflictError, NotFoundError, OperationError, StorageError
from app.packages.assets.core.logger import logger, volume_context
from app.packages.assets.crud.asset import asset_crud
from app.packages.assets.crud.criteria import FolderCriteria
from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.services.asset_persistence import AssetPersistence, AssetRecordPersistence
from app.packages.assets.services.folder_store import FolderStore
from app.packages.assets.utils.db_params import Exact
from app.packages.assets.utils.path_utils import (
    dir_key,
    is_valid_segment,
    join_folder_path,
    parent_folder_path,
    replace_path_prefix,
)


class FolderMutationService:
    def __init__(self, store: FolderStore, asset_persistence: Optional[AssetPersistence] = None):
        self.store = store
        self.db = store.db
        self.volumes = store.volumes
        self.assets = asset_persistence or AssetRecordPersistence(store.db, store.volumes)

    # ----------------------------
    # 创建
    # ----------------------------
    def create_folder(self, folder: VolumeFolder) -> VolumeFolder:
        """在父级下创建文件夹：先建物理目录，成功后才写入记录。"""
        if not is_valid_segment(folder.name):
            raise OperationError(f"文件夹名称无效: {folder.name!r}")
        parent = self.store.get_by_id(folder.parent_id) if folder.parent_id is not None else None
        if parent is None:
            raise OperationError(f"文件夹 {folder.name!r} 缺少有效的父级")

        self._ensure_name_free(parent.id, folder.name, exclude_id=folder.id)
        folder.volume_id = parent.volume_id
        folder.path = join_folder_path(parent.path, folder.name)

        with volume_context(folder.volume_id):
            self.volumes.backend_for_folder(parent).create_directory(dir_key(folder.path))
            saved = self.store.save(folder)
            logger.info("Created folder %s at %r", saved.id, saved.path)
        return saved

    # ----------------------------
    # 重命名与移动
    # ----------------------------
    def rename_folder(self, folder_id: int, new_name: str) -> str:
        """重命名文件夹并改写全部后代路径，返回新名称。"""
        new_name = (new_name or "").strip()
        if not is_valid_segment(new_name):
            raise OperationError(f"文件夹名称无效: {new_name!r}")
        folder = self._require_folder(folder_id)
        if folder.parent_id is None:
            raise OperationError("不能重命名根目录")
        if new_name == folder.name:
            return new_name

        self._ensure_name_free(folder.parent_id, new_name, exclude_id=folder.id)
        old_path = folder.path
        new_path = join_folder_path(parent_folder_path(old_path), new_name)
        descendants = self.store.get_all_descendant_folders(folder)

        with volume_context(folder.volume_id):
            self.volumes.backend_for_folder(folder).rename_directory(dir_key(old_path), new_name)
            self._rewrite_subtree(folder, descendants, old_path, new_path, name=new_name, parent_id=folder.parent_id)
            logger.info("Renamed folder %s: %r -> %r (%s descendants)", folder.id, old_path, new_path, len(descendants))
        return new_name

    def move_folder(self, folder_id: int, new_parent_id: int) -> VolumeFolder:
        """把文件夹移动到同一存储卷内的另一父级下。"""
        folder = self._require_folder(folder_id)
        if folder.parent_id is None:
            raise OperationError("不能移动根目录")
        target = self._require_folder(new_parent_id)
        if target.volume_id != folder.volume_id:
            raise OperationError("不支持跨存储卷移动文件夹")
        if target.id == folder.id or target.path.startswith(folder.path):
            raise OperationError("不能把文件夹移动到自身或其子目录下")
        if target.id == folder.parent_id:
            return folder

        self._ensure_name_free(target.id, folder.name, exclude_id=folder.id)
        old_path = folder.path
        new_path = join_folder_path(target.path, folder.name)
        descendants = self.store.get_all_descendant_folders(folder)

        with volume_context(folder.volume_id):
            self.volumes.backend_for_folder(folder).move_directory(dir_key(old_path), dir_key(new_path))
            self._rewrite_subtree(folder, descendants, old_path, new_path, name=folder.name, parent_id=target.id)
            logger.info("Moved folder %s: %r -> %r", folder.id, old_path, new_path)
        return folder

    def _rewrite_subtree(
        self,
        folder: VolumeFolder,
        descendants: List[VolumeFolder],
        old_path: str,
        new_path: str,
        *,
        name: str,
        parent_id: int,
    ) -> None:
        try:
            for descendant in descendants:
                descendant.path = replace_path_prefix(descendant.path, old_path, new_path)
                self.store.save(descendant, auto_commit=False)
            folder.name = name
            folder.parent_id = parent_id
            folder.path = new_path
            self.store.save(folder, auto_commit=False)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            self.store.clear()
            logger.error(
                "Directory %r was moved to %r on disk but folder records could not be updated",
                old_path,
                new_path,
                exc_info=True,
            )
            raise StorageError("文件夹记录更新失败，物理目录已变更") from exc

    # ----------------------------
    # 删除
    # ----------------------------
    def delete_folders(self, ids: Union[int, Iterable[int]], delete_physical: bool = True) -> List[int]:
        """删除文件夹子树及其中的资源。

        ``delete_physical`` 为 True 时尽力删除物理目录与资源文件（失败只记日志）；
        为 False 时仅移除记录，文件保留在存储卷上。
        """
        if isinstance(ids, int):
            ids = [ids]
        folders: List[VolumeFolder] = []
        for folder_id in ids:
            folder = self.store.get_by_id(folder_id)
            if folder is None:
                logger.debug("Folder %s not found, skipped", folder_id)
                continue
            folders.append(folder)
            if delete_physical:
                self.store.delete_physical_directory(folder)

        subtree_ids: Set[int] = set()
        for folder in folders:
            subtree_ids.add(folder.id)
            subtree_ids.update(d.id for d in self.store.get_all_descendant_folders(folder))

        for asset in asset_crud.list_by_folder_ids(self.db, subtree_ids):
            self.assets.delete_asset(asset, keep_file=not delete_physical)

        deleted = self.store.delete_subtree_by_ids([folder.id for folder in folders], cascade_physical=False)
        logger.info("Deleted %s folders (physical=%s)", len(deleted), delete_physical)
        return deleted

    # ----------------------------
    # 工具方法
    # ----------------------------
    def _require_folder(self, folder_id: int) -> VolumeFolder:
        folder = self.store.get_by_id(folder_id)
        if folder is None:
            raise NotFoundError(f"文件夹不存在: {folder_id}")
        return folder

    def _ensure_name_free(self, parent_id: int, name: str, *, exclude_id: Optional[int]) -> None:
        existing = self.store.find_one(FolderCriteria(parent_id=parent_id, name=Exact(name)))
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(f"同级目录下已存在名为 {name!r} 的文件夹")
