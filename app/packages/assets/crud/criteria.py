"""文件夹查询条件。"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Optional

from app.packages.assets.core.constants import CRITERIA_EMPTY, CRITERIA_NOT_EMPTY

IS_NULL = CRITERIA_EMPTY
NOT_NULL = CRITERIA_NOT_EMPTY


@dataclass
class FolderCriteria:
    """文件夹筛选条件；字段为 ``None`` 表示不限制。

    ``id``/``volume_id``/``parent_id`` 按数值条件解析，``name``/``uid``/``path``
    按字符串条件解析，详见 ``utils.db_params``。
    """

    id: Any = None
    volume_id: Any = None
    parent_id: Any = None
    name: Any = None
    uid: Any = None
    path: Any = None
    order: Optional[str] = None
    offset: Optional[int] = None
    limit: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "FolderCriteria":
        known = {f.name for f in fields(cls)}
        unknown = set(data or {}) - known
        if unknown:
            raise ValueError(f"unknown folder criteria: {', '.join(sorted(unknown))}")
        return cls(**(data or {}))

    def merged(self, **overrides: Any) -> "FolderCriteria":
        return replace(self, **overrides)

    def cache_key(self) -> tuple:
        return tuple((f.name, repr(getattr(self, f.name))) for f in fields(self))
