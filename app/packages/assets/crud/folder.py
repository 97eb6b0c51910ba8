"""VolumeFolder CRUD：条件查询、计数与子树查询。"""

from __future__ import annotations

from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from app.packages.assets.core.exceptions import OperationError
from app.packages.assets.crud.base import CRUDBase
from app.packages.assets.crud.criteria import FolderCriteria
from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.utils.db_params import Exact, parse_numeric_param, parse_param

_ORDER_COLUMNS = {
    "id": VolumeFolder.id,
    "parentid": VolumeFolder.parent_id,
    "parent_id": VolumeFolder.parent_id,
    "volumeid": VolumeFolder.volume_id,
    "volume_id": VolumeFolder.volume_id,
    "name": VolumeFolder.name,
    "path": VolumeFolder.path,
    "uid": VolumeFolder.uid,
}


def _order_clauses(order: str) -> list:
    clauses = []
    for part in order.split(","):
        tokens = part.strip().split()
        if not tokens:
            continue
        column = _ORDER_COLUMNS.get(tokens[0].lower())
        if column is None:
            raise OperationError(f"不支持的排序字段: {tokens[0]}")
        direction = tokens[1].lower() if len(tokens) > 1 else "asc"
        if direction not in ("asc", "desc"):
            raise OperationError(f"不支持的排序方向: {tokens[1]}")
        clauses.append(column.desc() if direction == "desc" else column.asc())
    return clauses


class CRUDFolder(CRUDBase[VolumeFolder]):
    def apply_conditions(self, query: Query, criteria: FolderCriteria) -> Query:
        """把条件对象中的非空字段以 AND 组合追加到查询。"""
        if criteria.id is not None:
            query = query.filter(parse_numeric_param(VolumeFolder.id, criteria.id))
        if criteria.volume_id is not None:
            query = query.filter(parse_numeric_param(VolumeFolder.volume_id, criteria.volume_id))
        if criteria.parent_id is not None:
            query = query.filter(parse_numeric_param(VolumeFolder.parent_id, criteria.parent_id))
        if criteria.name is not None:
            query = query.filter(parse_param(VolumeFolder.name, criteria.name))
        if criteria.uid is not None:
            query = query.filter(parse_param(VolumeFolder.uid, criteria.uid))
        if criteria.path is not None:
            path = criteria.path
            # 路径中的逗号按字面量匹配，而不是拆成多个取值
            if isinstance(path, str) and not isinstance(path, Exact) and "," in path:
                path = path.replace(",", "\\,")
            query = query.filter(parse_param(VolumeFolder.path, path))
        return query

    def find_one_by_uid(self, db: Session, uid: str) -> VolumeFolder | None:
        return self.query(db).filter(VolumeFolder.uid == uid).first()

    def find(self, db: Session, criteria: FolderCriteria) -> List[VolumeFolder]:
        query = self.apply_conditions(self.query(db), criteria)
        if criteria.order:
            query = query.order_by(*_order_clauses(criteria.order))
        if criteria.offset:
            query = query.offset(criteria.offset)
        if criteria.limit:
            query = query.limit(criteria.limit)
        return query.all()

    def count_matching(self, db: Session, criteria: FolderCriteria) -> int:
        query = self.apply_conditions(self.query(db).with_entities(func.count(VolumeFolder.id)), criteria)
        return int(query.scalar() or 0)

    def descendants(self, db: Session, folder: VolumeFolder, *, order_by: str | None = "path") -> List[VolumeFolder]:
        """同一卷内路径以 ``folder.path`` 开头的目录（不含自身与无父级记录）。"""
        query = (
            self.query(db)
            .filter(VolumeFolder.path.startswith(folder.path or "", autoescape=True))
            .filter(VolumeFolder.parent_id.is_not(None))
            .filter(VolumeFolder.id != folder.id)
        )
        if folder.volume_id is None:
            query = query.filter(VolumeFolder.volume_id.is_(None))
        else:
            query = query.filter(VolumeFolder.volume_id == folder.volume_id)
        if order_by:
            query = query.order_by(*_order_clauses(order_by))
        return query.all()


folder_crud = CRUDFolder(VolumeFolder)
