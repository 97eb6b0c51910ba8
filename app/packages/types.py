"""业务包描述：主应用只通过 ``AppPackage`` 接入业务包，不直接依赖其内部模块。"""

from __future__ import annotations

from dataclasses import dataclass
from logging import Logger
from typing import Callable, Tuple, Type

from fastapi import APIRouter


@dataclass(frozen=True)
class AppPackage:
    """业务包暴露给主应用的接口。

    ``middleware`` 按顺序注册到应用上（后注册的位于外层），
    例如把请求 id 写入日志上下文的中间件由包自己声明。
    """

    name: str
    description: str
    api_router: APIRouter
    get_settings: Callable[[], object]
    setup_logging: Callable[[], None]
    logger: Logger
    init_db: Callable[[], None]
    create_response: Callable[..., dict]
    http_exception_handler: Callable[..., object]
    generic_exception_handler: Callable[..., object]
    middleware: Tuple[Type, ...] = ()
