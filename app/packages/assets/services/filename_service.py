"""文件名冲突处理：为目标文件夹生成一个既不在记录中、也不在存储卷上的文件名。

候选顺序：
1. 原始文件名；
2. ``<stem>_<UTC 时间戳>_<4 位随机串>.<ext>``（stem 已带时间戳时不再追加）；
3. 在 2 的基础上追加 ``_1`` ... ``_N``，超长时截断 stem 部分。
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from app.packages.assets.core.config import get_settings
from app.packages.assets.core.exceptions import FilenameResolutionError, NotFoundError, OperationError
from app.packages.assets.core.logger import logger
from app.packages.assets.crud.asset import asset_crud
from app.packages.assets.services.folder_store import FolderStore

TIMESTAMP_SUFFIX_PATTERN = re.compile(r".*_\d{4}-\d{2}-\d{2}-\d{6}$")
TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"
RANDOM_ALPHABET = string.ascii_letters + string.digits


def random_string(length: int = 4) -> str:
    return "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(length))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def split_filename(filename: str) -> Tuple[str, str]:
    """按最后一个 '.' 拆分为 (stem, extension)；没有 '.' 时扩展名为空。"""
    if "." not in filename:
        return filename, ""
    stem, _, extension = filename.rpartition(".")
    return stem, extension


class FilenameConflictResolver:
    def __init__(
        self,
        store: FolderStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        random_source: Callable[[int], str] = random_string,
        max_length: Optional[int] = None,
        max_increment: Optional[int] = None,
    ):
        settings = get_settings()
        self.store = store
        self.volumes = store.volumes
        self.clock = clock
        self.random_source = random_source
        self.max_length = max_length or settings.filename_max_length
        self.max_increment = settings.filename_max_increment if max_increment is None else max_increment

    def resolve(self, original_filename: str, folder_id: int) -> str:
        filename = (original_filename or "").strip()
        if not filename or "/" in filename:
            raise OperationError(f"文件名无效: {original_filename!r}")
        folder = self.store.get_by_id(folder_id)
        if folder is None:
            raise NotFoundError(f"文件夹不存在: {folder_id}")

        backend = self.volumes.backend_for_folder(folder)
        db = self.store.db

        def can_use(candidate: str) -> bool:
            if asset_crud.filename_taken(db, folder_id=folder.id, filename=candidate):
                return False
            return not backend.file_exists(f"{folder.path}{candidate}")

        if can_use(filename):
            return filename

        stem, extension = split_filename(filename)
        tail = ""
        if not TIMESTAMP_SUFFIX_PATTERN.match(stem):
            tail = f"_{self.clock().astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)}"
        tail = f"{tail}_{self.random_source(4)}"
        dot_extension = f".{extension}" if extension else ""

        # 超长时只截断 stem，时间戳、随机串、序号与扩展名始终保留
        for increment in range(self.max_increment + 1):
            suffix = tail + (f"_{increment}" if increment else "") + dot_extension
            candidate = stem[: max(self.max_length - len(suffix), 0)] + suffix
            if can_use(candidate):
                logger.debug("Filename %r taken in folder %s, using %r", filename, folder.id, candidate)
                return candidate

        raise FilenameResolutionError(f"无法为 {filename!r} 生成可用的文件名", data={"folderId": folder.id})
