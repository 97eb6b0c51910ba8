"""存储卷 CRUD 封装。"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.assets.crud.base import CRUDBase
from app.packages.assets.models.volume import Volume


class CRUDVolume(CRUDBase[Volume]):
    def get_by_uid(self, db: Session, uid: str) -> Optional[Volume]:
        return self.query(db).filter(self.model.uid == uid).first()


volume_crud = CRUDVolume(Volume)
