"""用户临时目录：为每个用户（或匿名会话、控制台进程）提供一个专属的临时上传文件夹。

配置了 ``TEMP_VOLUME_ID`` 时，临时目录建在该存储卷的 ``TEMP_SUBPATH`` 下；
否则落在无存储卷的“临时区”：一个合成根目录加上每个调用方一个子目录，
物理目录位于本地 ``TEMP_UPLOADS_PATH``。
"""

from __future__ import annotations

import hashlib
import time
from typing import Callable, Optional

from app.packages.assets.core.config import Settings, get_settings
from app.packages.assets.core.exceptions import OperationError, StorageError
from app.packages.assets.core.logger import logger
from app.packages.assets.crud.criteria import IS_NULL, FolderCriteria
from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.services.folder_paths import FolderPathResolver
from app.packages.assets.services.folder_store import FolderStore
from app.packages.assets.utils.db_params import Exact
from app.packages.assets.utils.path_utils import join_folder_path, norm_folder_path


def _sha1(value: str) -> str:
    return hashlib.sha1(value.encode("utf-8")).hexdigest()


class TemporaryFolderProvisioner:
    def __init__(
        self,
        store: FolderStore,
        paths: Optional[FolderPathResolver] = None,
        *,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.volumes = store.volumes
        self.paths = paths or FolderPathResolver(store)
        self.settings = settings or get_settings()
        self.clock = clock

    def folder_name_for(
        self,
        user_id: Optional[int] = None,
        *,
        session_id: Optional[str] = None,
        console: bool = False,
    ) -> str:
        """已登录用户用 ``user_<id>``；控制台进程按当前秒级时间戳散列；匿名请求按会话 id 散列。"""
        if user_id is not None:
            return f"user_{user_id}"
        if console:
            return "temp_" + _sha1(str(int(self.clock())))
        if session_id:
            return "user_" + _sha1(session_id)
        raise OperationError("无法确定临时目录归属：缺少用户或会话标识")

    def get_user_temp_folder(
        self,
        user_id: Optional[int] = None,
        *,
        session_id: Optional[str] = None,
        console: bool = False,
    ) -> VolumeFolder:
        name = self.folder_name_for(user_id, session_id=session_id, console=console)
        if self.settings.temp_volume_id is not None:
            return self._folder_in_temp_volume(name)
        return self._folder_in_temp_area(name)

    def _folder_in_temp_volume(self, name: str) -> VolumeFolder:
        volume = self.volumes.get_volume_by_id(self.settings.temp_volume_id)
        if volume is None:
            raise StorageError(f"临时上传存储卷配置无效: {self.settings.temp_volume_id}")
        path = join_folder_path(norm_folder_path(self.settings.temp_subpath), name)
        return self.paths.ensure_path(path, volume, create_physical=True)

    def _folder_in_temp_area(self, name: str) -> VolumeFolder:
        root = self.store.find_one(FolderCriteria(volume_id=IS_NULL, parent_id=IS_NULL))
        if root is None:
            root = VolumeFolder(
                parent_id=None,
                volume_id=None,
                name=self.settings.temp_root_folder_name,
                path="",
            )
            self.store.save(root)
            logger.info("Created temporary uploads root folder %s", root.id)

        folder = self.store.find_one(FolderCriteria(parent_id=root.id, name=Exact(name)))
        if folder is None:
            folder = VolumeFolder(parent_id=root.id, volume_id=None, name=name, path=join_folder_path("", name))
            self.store.save(folder)
            logger.debug("Created temporary folder %s (%s)", folder.id, name)

        try:
            self.volumes.temp_backend().create_directory(name)
        except (StorageError, OSError) as exc:
            raise StorageError(f"无法创建临时上传目录: {name}") from exc
        return folder
