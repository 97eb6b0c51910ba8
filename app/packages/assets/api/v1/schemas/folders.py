"""文件夹相关的请求/响应模型。"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from app.packages.assets.api.v1.schemas.common import ResponseEnvelope


class FolderData(BaseModel):
    id: int
    uid: str
    parentId: Optional[int] = None
    volumeId: Optional[int] = None
    name: str
    path: str


class FolderCreateBody(BaseModel):
    parentId: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)


class FolderRenameBody(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class FolderMoveBody(BaseModel):
    parentId: int = Field(..., ge=1)


class FolderDeleteBody(BaseModel):
    ids: list[int] = Field(..., min_length=1)
    deletePhysical: bool = True


class EnsurePathBody(BaseModel):
    volumeId: int = Field(..., ge=1)
    path: str = ""
    createPhysical: bool = False


class FilenameBody(BaseModel):
    folderId: int = Field(..., ge=1)
    filename: str = Field(..., min_length=1)


FolderResponse = ResponseEnvelope[FolderData]
FolderTreeResponse = ResponseEnvelope[list[dict]]
FolderDeleteResponse = ResponseEnvelope[dict]
FilenameResponse = ResponseEnvelope[dict]
FoldersMutationResponse = ResponseEnvelope[Any]
