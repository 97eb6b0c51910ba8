"""资源文件夹业务包：存储卷上的文件夹树、路径解析与临时上传目录。"""

from app.packages.types import AppPackage

from .api.v1 import api_router
from .core.config import get_settings
from .core.exceptions import generic_exception_handler, http_exception_handler
from .core.logger import logger, setup_logging
from .core.middleware import RequestIdMiddleware
from .core.responses import create_response
from .db.init_db import init_db

package = AppPackage(
    name="assets",
    description="存储卷文件夹树、路径解析、文件名冲突处理与临时上传目录",
    api_router=api_router,
    get_settings=get_settings,
    setup_logging=setup_logging,
    logger=logger,
    init_db=init_db,
    create_response=create_response,
    http_exception_handler=http_exception_handler,
    generic_exception_handler=generic_exception_handler,
    middleware=(RequestIdMiddleware,),
)

__all__ = ["package", "api_router", "get_settings"]
