"""资源（上传文件）记录模型。

资源的生命周期由外部持久化协作者负责，本模块仅提供文件夹归属与文件名，
供目录删除与文件名冲突处理使用。
"""

from typing import Optional

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.assets.models.base import Base, SoftDeleteMixin, TimestampMixin, UidMixin


class Asset(UidMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    folder_id: Mapped[int] = mapped_column(Integer, index=True)
    volume_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    filename: Mapped[str] = mapped_column(String(255))
    # image / pdf / video / text / unknown ...
    kind: Mapped[str] = mapped_column(String(32), default="unknown")
    size_bytes: Mapped[int] = mapped_column(BigInteger, default=0)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
