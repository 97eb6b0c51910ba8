"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.assets.models.asset import Asset
from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.models.volume import Volume

__all__ = [
    "Asset",
    "Volume",
    "VolumeFolder",
]
