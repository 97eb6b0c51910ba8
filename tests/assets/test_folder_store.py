"""文件夹存储与条件查询测试。"""

from __future__ import annotations

import pytest

from app.packages.assets.core.exceptions import OperationError
from app.packages.assets.crud.criteria import IS_NULL, NOT_NULL, FolderCriteria
from app.packages.assets.services.folder_paths import FolderPathResolver
from app.packages.assets.services.folder_store import FolderStore
from app.packages.assets.utils.db_params import Exact


def _build(store: FolderStore, volume, *paths: str) -> dict:
    resolver = FolderPathResolver(store)
    return {path: resolver.ensure_path(path, volume) for path in paths}


def test_get_by_id_and_uid_share_cached_instance(store, local_volume):
    folders = _build(store, local_volume, "docs")
    docs = folders["docs"]

    fresh = FolderStore(store.db)
    by_id = fresh.get_by_id(docs.id)
    by_uid = fresh.get_by_uid(docs.uid)
    assert by_id is by_uid
    assert by_id.path == "docs/"


def test_missing_lookups_are_cached_until_clear(store):
    assert store.get_by_id(987654321) is None
    assert store.cache.lookup_id(987654321) == (True, None)
    assert store.get_by_uid("no-such-uid") is None
    assert store.cache.lookup_uid("no-such-uid") == (True, None)

    store.clear()
    assert store.cache.lookup_id(987654321) == (False, None)
    assert len(store.cache) == 0


def test_find_accepts_dict_and_rejects_unknown_keys(store, local_volume):
    _build(store, local_volume, "a/b", "a/c")
    found = store.find({"volume_id": local_volume.id, "parent_id": NOT_NULL, "order": "path"})
    assert [f.path for f in found] == ["a/", "a/b/", "a/c/"]

    with pytest.raises(ValueError):
        store.find({"volumeId": local_volume.id})


def test_find_one_and_count_matching(store, local_volume):
    _build(store, local_volume, "x/y")
    root = store.get_root_folder_by_volume_id(local_volume.id)
    assert root is not None and root.path == ""
    assert store.find_one(FolderCriteria(volume_id=local_volume.id, path=Exact("missing/"))) is None
    assert store.count_matching(FolderCriteria(volume_id=local_volume.id)) == 3
    assert store.count_matching(FolderCriteria(volume_id=local_volume.id, parent_id=IS_NULL)) == 1


def test_path_with_comma_matches_literally(store, local_volume):
    folders = _build(store, local_volume, "a,b", "a", "b")
    found = store.find(FolderCriteria(volume_id=local_volume.id, path="a,b/"))
    assert [f.id for f in found] == [folders["a,b"].id]


def test_name_wildcards_negation_and_or(store, local_volume):
    _build(store, local_volume, "report", "reports", "summary")
    base = FolderCriteria(volume_id=local_volume.id, order="name")

    assert [f.name for f in store.find(base.merged(name="rep*"))] == ["report", "reports"]
    assert [f.name for f in store.find(base.merged(name="rep*,not reports"))] == ["report"]
    assert [f.name for f in store.find(base.merged(name="report,summary"))] == ["report", "summary"]


def test_numeric_criteria_lists_and_comparisons(store, local_volume):
    folders = _build(store, local_volume, "one", "two", "three")
    ids = sorted(f.id for f in folders.values())

    found = store.find(FolderCriteria(id=[ids[0], ids[2]], order="id"))
    assert [f.id for f in found] == [ids[0], ids[2]]

    found = store.find(FolderCriteria(volume_id=local_volume.id, id=f">={ids[1]}", order="id desc"))
    assert [f.id for f in found] == [ids[2], ids[1]]


def test_offset_and_limit(store, local_volume):
    _build(store, local_volume, "p1", "p2", "p3")
    page = store.find(FolderCriteria(volume_id=local_volume.id, parent_id=NOT_NULL, order="path", offset=1, limit=1))
    assert [f.path for f in page] == ["p2/"]


def test_invalid_order_raises(store, local_volume):
    with pytest.raises(OperationError):
        store.find(FolderCriteria(volume_id=local_volume.id, order="size"))
    with pytest.raises(OperationError):
        store.find(FolderCriteria(volume_id=local_volume.id, order="path sideways"))


def test_invalid_numeric_value_raises(store):
    with pytest.raises(OperationError):
        store.find(FolderCriteria(id="abc"))


def test_descendants_stay_inside_prefix_and_volume(store, local_volume):
    _build(store, local_volume, "a_/x/z", "ab/y")
    parent = store.find_one(FolderCriteria(volume_id=local_volume.id, path=Exact("a_/")))
    descendants = store.get_all_descendant_folders(parent)
    assert [d.path for d in descendants] == ["a_/x/", "a_/x/z/"]


def test_delete_subtree_removes_descendants_and_forgets_cache(store, local_volume):
    folders = _build(store, local_volume, "keep", "drop/inner/deep")
    drop = store.find_one(FolderCriteria(volume_id=local_volume.id, path=Exact("drop/")))
    deep_id = folders["drop/inner/deep"].id

    deleted = store.delete_subtree_by_ids([drop.id])
    assert deleted[0] == deep_id
    assert deleted[-1] == drop.id
    assert len(deleted) == 3
    assert store.get_by_id(deep_id) is None
    assert store.find(FolderCriteria(volume_id=local_volume.id, path="drop*")) == []
    assert store.get_by_id(folders["keep"].id) is not None
