"""文件夹路径解析：保证完整路径上的每一级都有文件夹记录（可选同时创建物理目录）。"""

from __future__ import annotations

from app.packages.assets.core.logger import logger, volume_context
from app.packages.assets.crud.criteria import FolderCriteria
from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.models.volume import Volume
from app.packages.assets.services.folder_store import FolderStore
from app.packages.assets.utils.db_params import Exact
from app.packages.assets.utils.path_utils import dir_key, join_folder_path, split_segments


class FolderPathResolver:
    def __init__(self, store: FolderStore):
        self.store = store
        self.volumes = store.volumes

    def ensure_top_folder(self, volume: Volume) -> VolumeFolder:
        """返回卷根目录记录，不存在时创建（path 为空字符串）。"""
        folder = self.store.get_root_folder_by_volume_id(volume.id)
        if folder is None:
            folder = VolumeFolder(parent_id=None, volume_id=volume.id, name=volume.name, path="")
            self.store.save(folder)
            logger.info("Created root folder %s for volume %s", folder.id, volume.id)
        return folder

    def ensure_path(self, full_path: str, volume: Volume, create_physical: bool = False) -> VolumeFolder:
        """逐级查找或创建 ``full_path`` 对应的文件夹，返回最后一级（空路径返回卷根目录）。

        并发调用同一路径时：插入前再按 (parent_id, name) 检查一次，避免重复记录；
        物理目录的创建是幂等的，目录已存在不会报错。
        """
        current = self.ensure_top_folder(volume)
        backend = self.volumes.get_backend(volume) if create_physical else None

        path = ""
        with volume_context(volume.id):
            for segment in split_segments(full_path):
                path = join_folder_path(path, segment)
                folder = self.store.find_one(FolderCriteria(path=Exact(path), volume_id=volume.id))
                if folder is None:
                    folder = self.store.find_one(FolderCriteria(parent_id=current.id, name=Exact(segment)))
                if folder is None:
                    folder = VolumeFolder(parent_id=current.id, volume_id=volume.id, name=segment, path=path)
                    self.store.save(folder)
                    logger.debug("Created folder record %s for path %r", folder.id, path)
                if backend is not None:
                    backend.create_directory(dir_key(path))
                current = folder
        return current
