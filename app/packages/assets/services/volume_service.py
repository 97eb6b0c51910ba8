"""存储卷服务：按 id/uid 解析存储卷，并构建、缓存对应的后端实例。"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.packages.assets.core.config import get_settings
from app.packages.assets.core.exceptions import NotFoundError
from app.packages.assets.crud.volume import volume_crud
from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.models.volume import Volume
from app.packages.assets.services.volume_backends import LocalVolumeBackend, VolumeBackend, build_backend

BackendFactory = Callable[[Volume], VolumeBackend]


class VolumeService:
    def __init__(self, db: Session, *, backend_factory: BackendFactory = build_backend):
        self.db = db
        self._backend_factory = backend_factory
        self._backends: Dict[int, VolumeBackend] = {}
        self._temp_backend: Optional[VolumeBackend] = None

    def get_volume_by_id(self, volume_id: int) -> Optional[Volume]:
        return volume_crud.get(self.db, volume_id)

    def get_volume_by_uid(self, uid: str) -> Optional[Volume]:
        return volume_crud.get_by_uid(self.db, uid)

    def require_volume(self, volume_id: Optional[int]) -> Volume:
        volume = self.get_volume_by_id(volume_id) if volume_id is not None else None
        if volume is None:
            raise NotFoundError(f"存储卷不存在或已删除: {volume_id}")
        return volume

    def get_backend(self, volume: Volume) -> VolumeBackend:
        backend = self._backends.get(volume.id)
        if backend is None:
            backend = self._backend_factory(volume)
            self._backends[volume.id] = backend
        return backend

    def backend_for_volume_id(self, volume_id: Optional[int]) -> VolumeBackend:
        return self.get_backend(self.require_volume(volume_id))

    def temp_backend(self) -> VolumeBackend:
        """未配置临时存储卷时，临时区目录落在本地 TEMP_UPLOADS_PATH 下。"""
        if self._temp_backend is None:
            self._temp_backend = LocalVolumeBackend(get_settings().temp_uploads_directory)
        return self._temp_backend

    def backend_for_folder(self, folder: VolumeFolder) -> VolumeBackend:
        if folder.volume_id is None:
            return self.temp_backend()
        return self.backend_for_volume_id(folder.volume_id)
