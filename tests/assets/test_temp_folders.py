"""用户临时目录测试。"""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from app.packages.assets.core.config import get_settings
from app.packages.assets.core.exceptions import OperationError, StorageError
from app.packages.assets.services.temp_folder_service import TemporaryFolderProvisioner


def test_folder_names(store):
    provisioner = TemporaryFolderProvisioner(store, clock=lambda: 1700000000.9)

    assert provisioner.folder_name_for(42) == "user_42"
    assert provisioner.folder_name_for(session_id="abc") == "user_" + hashlib.sha1(b"abc").hexdigest()
    assert provisioner.folder_name_for(console=True) == "temp_" + hashlib.sha1(b"1700000000").hexdigest()
    with pytest.raises(OperationError):
        provisioner.folder_name_for()


def test_temp_area_folder_for_user(store):
    folder = TemporaryFolderProvisioner(store).get_user_temp_folder(7)
    assert folder.name == "user_7"
    assert folder.path == "user_7/"
    assert folder.volume_id is None

    root = store.get_by_id(folder.parent_id)
    assert root.parent_id is None
    assert root.volume_id is None
    assert root.path == ""
    assert root.name == get_settings().temp_root_folder_name
    assert (get_settings().temp_uploads_directory / "user_7").is_dir()


def test_temp_area_folder_is_reused(store):
    provisioner = TemporaryFolderProvisioner(store)
    first = provisioner.get_user_temp_folder(session_id="session-1")
    second = provisioner.get_user_temp_folder(session_id="session-1")
    assert first.id == second.id
    assert first.parent_id == second.parent_id


def test_temp_folder_on_configured_volume(store, local_volume):
    settings = get_settings().model_copy(update={"temp_volume_id": local_volume.id, "temp_subpath": "/uploads/tmp/"})
    folder = TemporaryFolderProvisioner(store, settings=settings).get_user_temp_folder(9)

    assert folder.volume_id == local_volume.id
    assert folder.path == "uploads/tmp/user_9/"
    assert (Path(local_volume.local_root_path) / "uploads" / "tmp" / "user_9").is_dir()


def test_missing_temp_volume_raises(store):
    settings = get_settings().model_copy(update={"temp_volume_id": 987654321})
    with pytest.raises(StorageError):
        TemporaryFolderProvisioner(store, settings=settings).get_user_temp_folder(1)
