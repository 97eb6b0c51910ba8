"""卷内文件夹模型。

存储规则：
- path：从卷根开始、以 '/' 结尾的完整路径，例如 "a/b/c/"；卷根目录为空字符串；
- name：当前节点名，不含路径分隔符；
- parent_id：仅卷根目录（以及临时区根目录）为空；
- volume_id：仅合成的临时区根目录及其子目录为空；
- 同级名称唯一由业务层在变更时校验，数据库不加约束。
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.assets.models.base import Base, TimestampMixin, UidMixin


class VolumeFolder(UidMixin, TimestampMixin, Base):
    __tablename__ = "volume_folders"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    parent_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    volume_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    path: Mapped[str] = mapped_column(String(1024), default="", index=True)

    def __repr__(self) -> str:
        return f"VolumeFolder(id={self.id!r}, volume_id={self.volume_id!r}, path={self.path!r})"
