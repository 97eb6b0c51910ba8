"""存储卷后端抽象与实现：统一封装本地与 S3 的目录/文件操作。

所有路径均为卷内相对路径，以 '/' 分隔、不带前导 '/'。
"""

from __future__ import annotations

import io
import mimetypes
import posixpath
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.packages.assets.core.constants import VOLUME_TYPE_LOCAL, VOLUME_TYPE_S3
from app.packages.assets.core.exceptions import OperationError, StorageError
from app.packages.assets.core.logger import storage_logger
from app.packages.assets.models.volume import Volume


def _norm_mime(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


# ------------------------------------------
# 公共数据结构
# ------------------------------------------

@dataclass
class ListItem:
    name: str
    type: str  # "file" | "directory"
    mime_type: Optional[str]
    size: int
    last_modified: Optional[str]


class VolumeBackend:
    """存储卷后端接口。"""

    def create_directory(self, path: str) -> None:
        """创建目录；目录已存在时不报错。"""
        raise NotImplementedError

    def rename_directory(self, old_path: str, new_name: str) -> None:
        raise NotImplementedError

    def move_directory(self, old_path: str, new_path: str) -> None:
        raise NotImplementedError

    def delete_directory(self, path: str) -> None:
        raise NotImplementedError

    def file_exists(self, path: str) -> bool:
        raise NotImplementedError

    def delete_file(self, path: str) -> None:
        raise NotImplementedError

    def list_directory(self, path: str) -> List[ListItem]:
        raise NotImplementedError

    def read_file(self, path: str) -> bytes:
        raise NotImplementedError

    def write_file(self, path: str, content: bytes) -> None:
        raise NotImplementedError


# ------------------------------------------
# 本地文件系统实现
# ------------------------------------------


class LocalVolumeBackend(VolumeBackend):
    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
        if not self.root.exists():
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:  # pragma: no cover - 极端情况下可能失败
                raise StorageError(f"无法创建本地根目录: {exc}") from exc

    # 统一的安全路径拼接，防止路径遍历
    def _resolve(self, rel: str) -> Path:
        rel_norm = (rel or "").strip().lstrip("/")
        candidate = (self.root / rel_norm).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError as exc:
            raise OperationError("非法路径: 越权访问") from exc
        return candidate

    def create_directory(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"无法创建目录 {path}: {exc}") from exc

    def rename_directory(self, old_path: str, new_name: str) -> None:
        src = self._resolve(old_path)
        if src == self.root:
            raise OperationError("不能重命名卷根目录")
        dst = self._resolve(posixpath.join(posixpath.dirname(old_path.strip("/")), new_name))
        self._move(src, dst, old_path)

    def move_directory(self, old_path: str, new_path: str) -> None:
        src = self._resolve(old_path)
        if src == self.root:
            raise OperationError("不能移动卷根目录")
        self._move(src, self._resolve(new_path), old_path)

    def _move(self, src: Path, dst: Path, label: str) -> None:
        if not src.is_dir():
            raise StorageError(f"目录不存在: {label}")
        if dst.exists():
            raise StorageError(f"目标路径已存在: {dst.name}")
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            src.rename(dst)
            storage_logger.debug("Moved directory %s -> %s", src, dst)
        except OSError as exc:
            raise StorageError(f"目录移动失败 {label}: {exc}") from exc

    def delete_directory(self, path: str) -> None:
        target = self._resolve(path)
        if target == self.root:
            raise OperationError("不能删除卷根目录")
        if not target.exists():
            # 允许幂等：不存在则忽略
            return
        try:
            shutil.rmtree(target)
            storage_logger.debug("Removed directory %s", target)
        except OSError as exc:
            raise StorageError(f"目录删除失败 {path}: {exc}") from exc

    def file_exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def delete_file(self, path: str) -> None:
        try:
            self._resolve(path).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"文件删除失败 {path}: {exc}") from exc

    def list_directory(self, path: str) -> List[ListItem]:
        base = self._resolve(path)
        if not base.is_dir():
            raise StorageError(f"目录不存在: {path}")
        items: List[ListItem] = []
        for entry in sorted(base.iterdir(), key=lambda p: (p.is_file(), p.name.lower())):
            stat = entry.stat()
            modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat()
            if entry.is_dir():
                items.append(ListItem(entry.name, "directory", None, 0, modified))
            else:
                items.append(ListItem(entry.name, "file", _norm_mime(entry.name), int(stat.st_size), modified))
        return items

    def read_file(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise StorageError(f"文件不存在: {path}")
        return target.read_bytes()

    def write_file(self, path: str, content: bytes) -> None:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise StorageError(f"文件写入失败 {path}: {exc}") from exc


# ------------------------------------------
# S3 实现（boto3）
# ------------------------------------------


class S3VolumeBackend(VolumeBackend):
    """S3 没有真实目录：目录以 ``<key>/`` 占位对象与前缀表示。"""

    def __init__(
        self,
        *,
        bucket: str,
        region: str,
        access_key_id: str,
        secret_access_key: str,
        prefix: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.prefix = (prefix or "").strip("/")
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
        )

    # 拼接基于 path_prefix 的对象 key
    def _join_key(self, rel: str) -> str:
        rel_norm = (rel or "").lstrip("/")
        if self.prefix:
            return f"{self.prefix}/{rel_norm}" if rel_norm else f"{self.prefix}/"
        return rel_norm

    def _dir_key(self, rel: str) -> str:
        key = self._join_key(rel.strip("/"))
        return key if key.endswith("/") or not key else key + "/"

    def _iter_keys(self, prefix: str):
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                yield obj["Key"]

    def create_directory(self, path: str) -> None:
        try:
            self._client.put_object(Bucket=self.bucket, Key=self._dir_key(path))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"无法创建目录 {path}: {exc}") from exc

    def rename_directory(self, old_path: str, new_name: str) -> None:
        parent = posixpath.dirname(old_path.strip("/"))
        self.move_directory(old_path, posixpath.join(parent, new_name) if parent else new_name)

    def move_directory(self, old_path: str, new_path: str) -> None:
        src_prefix = self._dir_key(old_path)
        dst_prefix = self._dir_key(new_path)
        try:
            keys = list(self._iter_keys(src_prefix))
            if not keys:
                raise StorageError(f"目录不存在: {old_path}")
            for key in keys:
                new_key = dst_prefix + key[len(src_prefix):]
                self._client.copy_object(Bucket=self.bucket, Key=new_key, CopySource={"Bucket": self.bucket, "Key": key})
            self._delete_keys(keys)
            storage_logger.debug("Moved %s objects from %r to %r", len(keys), src_prefix, dst_prefix)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"目录移动失败 {old_path}: {exc}") from exc

    def delete_directory(self, path: str) -> None:
        try:
            self._delete_keys(list(self._iter_keys(self._dir_key(path))))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"目录删除失败 {path}: {exc}") from exc

    def _delete_keys(self, keys: List[str]) -> None:
        # 批量删除（分批防止一次过多）
        for i in range(0, len(keys), 1000):
            batch = [{"Key": key} for key in keys[i : i + 1000]]
            if batch:
                self._client.delete_objects(Bucket=self.bucket, Delete={"Objects": batch})

    def file_exists(self, path: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=self._join_key(path))
            return True
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"无法检查文件 {path}: {exc}") from exc

    def delete_file(self, path: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=self._join_key(path))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"文件删除失败 {path}: {exc}") from exc

    def list_directory(self, path: str) -> List[ListItem]:
        prefix = self._dir_key(path)
        items: List[ListItem] = []
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix, Delimiter="/"):
            for common in page.get("CommonPrefixes", []):
                name = common.get("Prefix", "")[len(prefix):].rstrip("/")
                if name:
                    items.append(ListItem(name, "directory", None, 0, None))
            for content in page.get("Contents", []):
                name = content.get("Key", "")[len(prefix):]
                if not name or "/" in name:
                    continue
                modified = content.get("LastModified")
                items.append(
                    ListItem(
                        name,
                        "file",
                        _norm_mime(name),
                        int(content.get("Size") or 0),
                        modified.astimezone(timezone.utc).isoformat() if modified else None,
                    )
                )
        return items

    def read_file(self, path: str) -> bytes:
        try:
            resp = self._client.get_object(Bucket=self.bucket, Key=self._join_key(path))
            return resp["Body"].read()
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"文件读取失败 {path}: {exc}") from exc

    def write_file(self, path: str, content: bytes) -> None:
        try:
            self._client.upload_fileobj(io.BytesIO(content), self.bucket, self._join_key(path))
        except (BotoCoreError, ClientError) as exc:
            storage_logger.exception("S3 upload failed: %s", exc)
            raise StorageError(f"文件写入失败 {path}: {exc}") from exc


def build_backend(volume: Volume) -> VolumeBackend:
    t = (volume.type or "").upper()
    if t == VOLUME_TYPE_LOCAL:
        if not volume.local_root_path:
            raise OperationError("缺少本地根目录配置")
        return LocalVolumeBackend(volume.local_root_path)
    if t == VOLUME_TYPE_S3:
        if not (volume.region and volume.bucket_name and volume.access_key_id and volume.secret_access_key):
            raise OperationError("S3 配置不完整")
        return S3VolumeBackend(
            bucket=volume.bucket_name,
            region=volume.region,
            access_key_id=volume.access_key_id,
            secret_access_key=volume.secret_access_key,
            prefix=volume.path_prefix,
            endpoint_url=volume.endpoint_url,
        )
    raise OperationError("不支持的存储类型")
