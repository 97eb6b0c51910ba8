"""文件夹树组装测试。"""

from __future__ import annotations

from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.services.folder_paths import FolderPathResolver
from app.packages.assets.services.folder_tree import FolderTreeService, build_tree


def _folder(id: int, parent_id, path: str) -> VolumeFolder:
    name = path.rstrip("/").rsplit("/", 1)[-1] or "root"
    return VolumeFolder(id=id, parent_id=parent_id, volume_id=1, name=name, path=path)


def test_build_tree_links_children_in_input_order():
    folders = [
        _folder(1, None, ""),
        _folder(2, 1, "a/"),
        _folder(3, 2, "a/b/"),
        _folder(4, 1, "c/"),
    ]
    roots = build_tree(folders)
    assert [r.id for r in roots] == [1]
    assert [c.id for c in roots[0].children] == [2, 4]
    assert [c.id for c in roots[0].children[0].children] == [3]
    assert [n.id for n in roots[0].walk()] == [1, 2, 3, 4]


def test_build_tree_keeps_orphans_as_roots():
    roots = build_tree([_folder(10, 99, "x/"), _folder(11, 10, "x/y/")])
    assert [r.id for r in roots] == [10]
    assert roots[0].children[0].id == 11


def test_tree_by_volume_ids(store, local_volume):
    FolderPathResolver(store).ensure_path("photos/2024", local_volume)
    FolderPathResolver(store).ensure_path("docs", local_volume)

    service = FolderTreeService(store)
    trees = service.get_tree_by_volume_ids([local_volume.id, 987654])
    assert list(trees) == [local_volume.id]

    root = trees[local_volume.id]
    assert root.folder.path == ""
    data = root.to_dict()
    assert [c["path"] for c in data["children"]] == ["docs/", "photos/"]
    assert data["children"][1]["children"][0]["path"] == "photos/2024/"


def test_tree_by_volume_ids_is_memoized_until_clear(store, local_volume):
    service = FolderTreeService(store)
    first = service.get_tree_by_volume_ids([local_volume.id])[local_volume.id]
    FolderPathResolver(store).ensure_path("late", local_volume)

    assert service.get_tree_by_volume_ids([local_volume.id])[local_volume.id] is first
    service.clear()
    refreshed = service.get_tree_by_volume_ids([local_volume.id])[local_volume.id]
    assert [c.folder.name for c in refreshed.children] == ["late"]


def test_tree_by_folder_id(store, local_volume):
    leaf_parent = FolderPathResolver(store).ensure_path("a/b/c", local_volume)
    a = store.find_one({"volume_id": local_volume.id, "path": "a/"})

    roots = FolderTreeService(store).get_tree_by_folder_id(a.id)
    assert [r.id for r in roots] == [a.id]
    assert [n.folder.path for n in roots[0].walk()] == ["a/", "a/b/", "a/b/c/"]
    assert roots[0].children[0].children[0].id == leaf_parent.id

    assert FolderTreeService(store).get_tree_by_folder_id(987654321) == []
