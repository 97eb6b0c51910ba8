"""存储卷模型：支持 S3 与本地文件系统两类后端。"""

from typing import Optional

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.assets.models.base import Base, SoftDeleteMixin, TimestampMixin, UidMixin


class Volume(UidMixin, TimestampMixin, SoftDeleteMixin, Base):
    """存储卷，保存访问不同存储后端所需的连接信息。

    说明：
    - ``type`` 仅允许取值 "S3" 与 "LOCAL"；
    - S3 类型字段：``region``、``bucket_name``、``path_prefix``、``access_key_id``、``secret_access_key``；
    - 本地类型字段：``local_root_path``；
    - 每个卷拥有一条根目录记录（parent_id 为空、path 为空字符串）。
    """

    __tablename__ = "volumes"
    __table_args__ = (
        UniqueConstraint("handle", name="uq_volumes_handle"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), index=True)
    handle: Mapped[str] = mapped_column(String(64))
    type: Mapped[str] = mapped_column(String(16))  # "S3" or "LOCAL"
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    # S3 only
    region: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    bucket_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    path_prefix: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    access_key_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    secret_access_key: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    endpoint_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # LOCAL only
    local_root_path: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
