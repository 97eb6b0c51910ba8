"""文件夹存储：文件夹记录的读写与进程内 id/uid 缓存。

缓存只在一个工作单元（通常是一次请求）内有效：``FolderStore`` 与其
``FolderCache`` 随数据库会话一起创建，结束时调用 ``clear()``。
缓存仅作读穿透加速，数据库始终是唯一可信来源。
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from app.packages.assets.core.exceptions import AppException
from app.packages.assets.core.logger import logger
from app.packages.assets.crud.criteria import IS_NULL, FolderCriteria
from app.packages.assets.crud.folder import folder_crud
from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.services.volume_service import VolumeService
from app.packages.assets.utils.path_utils import dir_key

CriteriaLike = Union[FolderCriteria, Dict[str, Any], None]


def to_criteria(criteria: CriteriaLike) -> FolderCriteria:
    if isinstance(criteria, FolderCriteria):
        return criteria
    return FolderCriteria.from_dict(criteria)


class FolderCache:
    """按 id 与 uid 缓存文件夹对象；``None`` 表示已确认不存在。"""

    def __init__(self) -> None:
        self._by_id: Dict[int, Optional[VolumeFolder]] = {}
        self._by_uid: Dict[str, Optional[VolumeFolder]] = {}

    def lookup_id(self, folder_id: int) -> Tuple[bool, Optional[VolumeFolder]]:
        if folder_id in self._by_id:
            return True, self._by_id[folder_id]
        return False, None

    def lookup_uid(self, uid: str) -> Tuple[bool, Optional[VolumeFolder]]:
        if uid in self._by_uid:
            return True, self._by_uid[uid]
        return False, None

    def remember(self, folder: VolumeFolder) -> None:
        self._by_id[folder.id] = folder
        if folder.uid:
            self._by_uid[folder.uid] = folder

    def remember_missing_id(self, folder_id: int) -> None:
        self._by_id[folder_id] = None

    def remember_missing_uid(self, uid: str) -> None:
        self._by_uid[uid] = None

    def forget(self, folder: VolumeFolder) -> None:
        self._by_id[folder.id] = None
        if folder.uid:
            self._by_uid[folder.uid] = None

    def clear(self) -> None:
        self._by_id.clear()
        self._by_uid.clear()

    def __len__(self) -> int:
        return len(self._by_id)


class FolderStore:
    def __init__(
        self,
        db: Session,
        volumes: Optional[VolumeService] = None,
        *,
        cache: Optional[FolderCache] = None,
    ):
        self.db = db
        self.volumes = volumes or VolumeService(db)
        self.cache = cache if cache is not None else FolderCache()

    def clear(self) -> None:
        """工作单元边界：丢弃全部缓存。"""
        self.cache.clear()

    # ----------------------------
    # 查询
    # ----------------------------
    def get_by_id(self, folder_id: int) -> Optional[VolumeFolder]:
        hit, folder = self.cache.lookup_id(folder_id)
        if hit:
            return folder
        folder = folder_crud.get(self.db, folder_id)
        if folder is None:
            self.cache.remember_missing_id(folder_id)
            return None
        self.cache.remember(folder)
        return folder

    def get_by_uid(self, uid: str) -> Optional[VolumeFolder]:
        hit, folder = self.cache.lookup_uid(uid)
        if hit:
            return folder
        folder = folder_crud.find_one_by_uid(self.db, uid)
        if folder is None:
            self.cache.remember_missing_uid(uid)
            return None
        self.cache.remember(folder)
        return folder

    def find(self, criteria: CriteriaLike = None) -> List[VolumeFolder]:
        folders = folder_crud.find(self.db, to_criteria(criteria))
        for folder in folders:
            self.cache.remember(folder)
        return folders

    def find_one(self, criteria: CriteriaLike = None) -> Optional[VolumeFolder]:
        folders = self.find(to_criteria(criteria).merged(limit=1))
        return folders[0] if folders else None

    def count_matching(self, criteria: CriteriaLike = None) -> int:
        return folder_crud.count_matching(self.db, to_criteria(criteria))

    def get_all_descendant_folders(self, folder: VolumeFolder, order_by: Optional[str] = "path") -> List[VolumeFolder]:
        descendants = folder_crud.descendants(self.db, folder, order_by=order_by)
        for descendant in descendants:
            self.cache.remember(descendant)
        return descendants

    def get_root_folder_by_volume_id(self, volume_id: int) -> Optional[VolumeFolder]:
        return self.find_one(FolderCriteria(volume_id=volume_id, parent_id=IS_NULL))

    # ----------------------------
    # 写入
    # ----------------------------
    def save(self, folder: VolumeFolder, *, auto_commit: bool = True) -> VolumeFolder:
        """无 id 时插入（生成 id 与 uid），否则按 id 更新；uid 不会被改写。"""
        saved = folder_crud.save(self.db, folder, auto_commit=auto_commit)
        self.cache.remember(saved)
        return saved

    def delete_physical_directory(self, folder: VolumeFolder) -> bool:
        """尽力删除文件夹对应的物理目录，失败只记录日志。"""
        if not dir_key(folder.path):
            logger.debug("Skip physical deletion for root folder %s", folder.id)
            return False
        try:
            self.volumes.backend_for_folder(folder).delete_directory(dir_key(folder.path))
        except (AppException, OSError):
            logger.warning("Failed to delete directory %r of folder %s, continuing", folder.path, folder.id, exc_info=True)
            return False
        return True

    def delete_subtree_by_ids(self, ids: Iterable[int], cascade_physical: bool = False) -> List[int]:
        """删除目标文件夹及其全部后代记录，后代按深度由深到浅删除。

        返回实际删除的文件夹 id（按删除顺序）。
        """
        deleted: List[int] = []
        try:
            for folder_id in ids:
                folder = self.get_by_id(folder_id)
                if folder is None or folder.id in deleted:
                    continue
                if cascade_physical:
                    self.delete_physical_directory(folder)
                descendants = self.get_all_descendant_folders(folder)
                descendants.sort(key=lambda d: d.path.count("/"), reverse=True)
                for target in [*descendants, folder]:
                    if target.id in deleted:
                        continue
                    folder_crud.hard_delete(self.db, target, auto_commit=False)
                    self.db.flush()
                    deleted.append(target.id)
                    self.cache.forget(target)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.cache.clear()
            raise
        return deleted
