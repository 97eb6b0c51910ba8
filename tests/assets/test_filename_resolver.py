"""文件名冲突处理测试：固定时钟与随机串，结果可预期。"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from app.packages.assets.core.exceptions import FilenameResolutionError, NotFoundError
from app.packages.assets.crud.asset import asset_crud
from app.packages.assets.services.filename_service import FilenameConflictResolver, split_filename
from app.packages.assets.services.folder_paths import FolderPathResolver

FIXED_NOW = datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


def _resolver(store, **kwargs) -> FilenameConflictResolver:
    return FilenameConflictResolver(store, clock=lambda: FIXED_NOW, random_source=lambda n: "abcd", **kwargs)


def _folder(store, volume, path="uploads"):
    return FolderPathResolver(store).ensure_path(path, volume, create_physical=True)


def _taken(store, folder, *filenames: str) -> None:
    for filename in filenames:
        asset_crud.create(store.db, {"folder_id": folder.id, "volume_id": folder.volume_id, "filename": filename})


def test_split_filename():
    assert split_filename("photo.jpg") == ("photo", "jpg")
    assert split_filename("archive.tar.gz") == ("archive.tar", "gz")
    assert split_filename("README") == ("README", "")


def test_free_name_is_returned_unchanged(store, local_volume):
    folder = _folder(store, local_volume)
    assert _resolver(store).resolve("photo.jpg", folder.id) == "photo.jpg"


def test_taken_name_gets_timestamp_and_random_suffix(store, local_volume):
    folder = _folder(store, local_volume)
    _taken(store, folder, "photo.jpg", "photo_1.jpg")
    assert _resolver(store).resolve("photo.jpg", folder.id) == "photo_2026-10-16-120000_abcd.jpg"


def test_comparison_ignores_case(store, local_volume):
    folder = _folder(store, local_volume)
    _taken(store, folder, "Photo.JPG")
    assert _resolver(store).resolve("photo.jpg", folder.id) == "photo_2026-10-16-120000_abcd.jpg"


def test_file_on_volume_without_record_counts_as_taken(store, local_volume):
    folder = _folder(store, local_volume)
    (Path(local_volume.local_root_path) / "uploads" / "notes.txt").write_text("x")
    assert _resolver(store).resolve("notes.txt", folder.id) == "notes_2026-10-16-120000_abcd.txt"


def test_existing_timestamp_is_not_repeated(store, local_volume):
    folder = _folder(store, local_volume)
    _taken(store, folder, "scan_2025-01-02-030405.png")
    result = _resolver(store).resolve("scan_2025-01-02-030405.png", folder.id)
    assert result == "scan_2025-01-02-030405_abcd.png"


def test_increment_when_generated_name_is_taken(store, local_volume):
    folder = _folder(store, local_volume)
    _taken(store, folder, "photo.jpg", "photo_2026-10-16-120000_abcd.jpg")
    assert _resolver(store).resolve("photo.jpg", folder.id) == "photo_2026-10-16-120000_abcd_1.jpg"


def test_name_without_extension_gets_no_trailing_dot(store, local_volume):
    folder = _folder(store, local_volume)
    _taken(store, folder, "README")
    assert _resolver(store).resolve("README", folder.id) == "README_2026-10-16-120000_abcd"


def test_generated_name_is_truncated_to_max_length(store, local_volume):
    folder = _folder(store, local_volume)
    long_name = "x" * 300 + ".txt"
    _taken(store, folder, long_name)

    result = _resolver(store).resolve(long_name, folder.id)
    assert len(result) == 255
    assert result.endswith(".txt")


def test_long_name_resolved_again_after_save_gets_next_increment(store, local_volume):
    folder = _folder(store, local_volume)
    long_name = "x" * 300 + ".txt"
    _taken(store, folder, long_name)
    resolver = _resolver(store)

    first = resolver.resolve(long_name, folder.id)
    _taken(store, folder, first)
    second = resolver.resolve(long_name, folder.id)

    assert first != second
    assert first.endswith("_2026-10-16-120000_abcd.txt")
    assert second.endswith("_2026-10-16-120000_abcd_1.txt")
    assert len(first) <= 255 and len(second) <= 255


def test_resolved_names_differ_once_persisted(store, local_volume):
    folder = _folder(store, local_volume)
    resolver = FilenameConflictResolver(store)
    first = resolver.resolve("clip.mp4", folder.id)
    _taken(store, folder, first)
    second = resolver.resolve("clip.mp4", folder.id)
    assert first == "clip.mp4"
    assert second != first


def test_exhausted_increments_raise(store, local_volume):
    folder = _folder(store, local_volume)
    base = "photo_2026-10-16-120000_abcd"
    _taken(store, folder, "photo.jpg", f"{base}.jpg", f"{base}_1.jpg", f"{base}_2.jpg")
    with pytest.raises(FilenameResolutionError):
        _resolver(store, max_increment=2).resolve("photo.jpg", folder.id)


def test_unknown_folder_raises(store):
    with pytest.raises(NotFoundError):
        _resolver(store).resolve("photo.jpg", 987654321)


def test_soft_deleted_assets_do_not_block_names(store, local_volume):
    folder = _folder(store, local_volume)
    _taken(store, folder, "old.png")
    asset_crud.soft_delete(store.db, asset_crud.query(store.db).filter_by(folder_id=folder.id).one())
    assert _resolver(store).resolve("old.png", folder.id) == "old.png"
