"""文件夹树、路径与临时目录相关路由。"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Path, Query

from app.packages.assets.api.v1.schemas.folders import (
    EnsurePathBody,
    FilenameBody,
    FolderCreateBody,
    FolderDeleteBody,
    FolderDeleteResponse,
    FolderMoveBody,
    FolderRenameBody,
    FolderResponse,
    FolderTreeResponse,
    FilenameResponse,
)
from app.packages.assets.core.constants import HTTP_STATUS_OK
from app.packages.assets.core.dependencies import get_folder_store
from app.packages.assets.core.exceptions import NotFoundError, OperationError
from app.packages.assets.core.logger import logger
from app.packages.assets.core.responses import create_response
from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.services.filename_service import FilenameConflictResolver
from app.packages.assets.services.folder_paths import FolderPathResolver
from app.packages.assets.services.folder_service import FolderMutationService
from app.packages.assets.services.folder_store import FolderStore
from app.packages.assets.services.folder_tree import FolderTreeService
from app.packages.assets.services.temp_folder_service import TemporaryFolderProvisioner

router = APIRouter(prefix="/folders", tags=["folders"])


def serialize_folder(folder: VolumeFolder) -> Dict[str, Any]:
    return {
        "id": folder.id,
        "uid": folder.uid,
        "parentId": folder.parent_id,
        "volumeId": folder.volume_id,
        "name": folder.name,
        "path": folder.path,
    }


def _parse_ids(raw: str) -> list[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise OperationError(f"无效的 id 列表: {raw}") from exc


@router.get("/tree", response_model=FolderTreeResponse)
def get_volume_trees(
    volume_ids: str = Query(..., alias="volumeIds"),
    name: Optional[str] = Query(None),
    store: FolderStore = Depends(get_folder_store),
):
    criteria = {"name": name} if name else None
    trees = FolderTreeService(store).get_tree_by_volume_ids(_parse_ids(volume_ids), criteria)
    data = [root.to_dict() for root in trees.values()]
    return create_response("获取文件夹树成功", data, HTTP_STATUS_OK)


@router.post("/ensure-path", response_model=FolderResponse)
def ensure_path(payload: EnsurePathBody, store: FolderStore = Depends(get_folder_store)):
    volume = store.volumes.require_volume(payload.volumeId)
    folder = FolderPathResolver(store).ensure_path(payload.path, volume, create_physical=payload.createPhysical)
    return create_response("路径已就绪", serialize_folder(folder), HTTP_STATUS_OK)


@router.post("/filename", response_model=FilenameResponse)
def resolve_filename(payload: FilenameBody, store: FolderStore = Depends(get_folder_store)):
    filename = FilenameConflictResolver(store).resolve(payload.filename, payload.folderId)
    return create_response("获取可用文件名成功", {"filename": filename}, HTTP_STATUS_OK)


@router.get("/temp", response_model=FolderResponse)
def get_temp_folder(
    user_id: Optional[int] = Query(None, alias="userId", ge=1),
    session_id: Optional[str] = Header(None, alias="X-Session-Id"),
    store: FolderStore = Depends(get_folder_store),
):
    folder = TemporaryFolderProvisioner(store).get_user_temp_folder(user_id, session_id=session_id)
    return create_response("获取临时目录成功", serialize_folder(folder), HTTP_STATUS_OK)


@router.get("/by-uid/{uid}", response_model=FolderResponse)
def get_folder_by_uid(uid: str, store: FolderStore = Depends(get_folder_store)):
    folder = store.get_by_uid(uid)
    if folder is None:
        raise NotFoundError(f"文件夹不存在: {uid}")
    return create_response("获取文件夹成功", serialize_folder(folder), HTTP_STATUS_OK)


@router.get("/{folder_id}", response_model=FolderResponse)
def get_folder(folder_id: int = Path(..., ge=1), store: FolderStore = Depends(get_folder_store)):
    folder = store.get_by_id(folder_id)
    if folder is None:
        raise NotFoundError(f"文件夹不存在: {folder_id}")
    return create_response("获取文件夹成功", serialize_folder(folder), HTTP_STATUS_OK)


@router.get("/{folder_id}/tree", response_model=FolderTreeResponse)
def get_folder_tree(folder_id: int = Path(..., ge=1), store: FolderStore = Depends(get_folder_store)):
    nodes = FolderTreeService(store).get_tree_by_folder_id(folder_id)
    return create_response("获取文件夹树成功", [node.to_dict() for node in nodes], HTTP_STATUS_OK)


@router.post("", response_model=FolderResponse)
def create_folder(payload: FolderCreateBody, store: FolderStore = Depends(get_folder_store)):
    folder = FolderMutationService(store).create_folder(VolumeFolder(parent_id=payload.parentId, name=payload.name))
    return create_response("创建文件夹成功", serialize_folder(folder), HTTP_STATUS_OK)


@router.patch("/{folder_id}", response_model=FolderResponse)
def rename_folder(
    payload: FolderRenameBody,
    folder_id: int = Path(..., ge=1),
    store: FolderStore = Depends(get_folder_store),
):
    FolderMutationService(store).rename_folder(folder_id, payload.name)
    folder = store.get_by_id(folder_id)
    return create_response("重命名文件夹成功", serialize_folder(folder), HTTP_STATUS_OK)


@router.post("/{folder_id}/move", response_model=FolderResponse)
def move_folder(
    payload: FolderMoveBody,
    folder_id: int = Path(..., ge=1),
    store: FolderStore = Depends(get_folder_store),
):
    folder = FolderMutationService(store).move_folder(folder_id, payload.parentId)
    return create_response("移动文件夹成功", serialize_folder(folder), HTTP_STATUS_OK)


@router.delete("", response_model=FolderDeleteResponse)
def delete_folders(payload: FolderDeleteBody, store: FolderStore = Depends(get_folder_store)):
    deleted = FolderMutationService(store).delete_folders(payload.ids, delete_physical=payload.deletePhysical)
    logger.info("Folder deletion requested for %s, removed %s records", payload.ids, len(deleted))
    return create_response("删除文件夹成功", {"deleted": deleted}, HTTP_STATUS_OK)
