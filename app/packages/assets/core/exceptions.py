"""异常处理模块：定义统一的业务异常与响应格式。

业务异常按语义分为四类：
- ``NotFoundError``：要求存在的文件夹/存储卷不存在；
- ``ConflictError``：同级名称或路径冲突；
- ``OperationError``：结构性误用（重命名根目录、无父级创建、文件名候选耗尽等）；
- ``StorageError``：物理存储卷操作失败。
"""

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from app.packages.assets.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_CONFLICT,
    HTTP_STATUS_INTERNAL_ERROR,
    HTTP_STATUS_NOT_FOUND,
)


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    def __init__(self, msg: str, code: int = HTTP_STATUS_BAD_REQUEST, data=None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.msg = msg
        self.data = data

    def __str__(self) -> str:
        return self.msg


class NotFoundError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, HTTP_STATUS_NOT_FOUND, data)


class ConflictError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, HTTP_STATUS_CONFLICT, data)


class OperationError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, HTTP_STATUS_BAD_REQUEST, data)


class FilenameResolutionError(OperationError):
    """在允许的递增次数内找不到可用文件名。"""


class StorageError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, HTTP_STATUS_INTERNAL_ERROR, data)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    payload = {"msg": exc.detail, "data": getattr(exc, "data", None), "code": exc.status_code}
    return JSONResponse(status_code=exc.status_code, content=payload)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：将未捕获异常转换为标准的 500 响应结构。"""
    payload = {
        "msg": "服务器内部错误",
        "data": None,
        "code": HTTP_STATUS_INTERNAL_ERROR,
    }
    return JSONResponse(status_code=HTTP_STATUS_INTERNAL_ERROR, content=payload)
