"""文件夹树：把扁平的文件夹列表组装成父子关联的树（纯内存，不再发起查询）。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from app.packages.assets.models.folder import VolumeFolder
from app.packages.assets.services.folder_store import CriteriaLike, FolderStore, to_criteria


@dataclass
class FolderNode:
    folder: VolumeFolder
    children: List["FolderNode"] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.folder.id

    def walk(self):
        """先序遍历当前节点及其全部后代。"""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        folder = self.folder
        return {
            "id": folder.id,
            "uid": folder.uid,
            "parentId": folder.parent_id,
            "volumeId": folder.volume_id,
            "name": folder.name,
            "path": folder.path,
            "children": [child.to_dict() for child in self.children],
        }


def build_tree(folders: Iterable[VolumeFolder]) -> List[FolderNode]:
    """单次遍历建树：父级已出现则挂到父级下，否则作为根；根按首次出现顺序返回。"""
    roots: List[FolderNode] = []
    lookup: Dict[int, FolderNode] = {}
    for folder in folders:
        node = FolderNode(folder)
        parent = lookup.get(folder.parent_id) if folder.parent_id is not None else None
        if parent is not None:
            parent.children.append(node)
        else:
            roots.append(node)
        lookup[folder.id] = node
    return roots


class FolderTreeService:
    def __init__(self, store: FolderStore):
        self.store = store
        self._volume_trees: Dict[tuple, Optional[FolderNode]] = {}

    def get_tree_by_volume_ids(
        self,
        volume_ids: Iterable[int],
        additional_criteria: CriteriaLike = None,
    ) -> Dict[int, FolderNode]:
        """按卷返回目录树根节点；调用方条件不能覆盖 volume_id 与排序。"""
        base = to_criteria(additional_criteria)
        tree: Dict[int, FolderNode] = {}
        for volume_id in volume_ids:
            criteria = base.merged(volume_id=volume_id, order="path")
            key = criteria.cache_key()
            if key not in self._volume_trees:
                subtree = build_tree(self.store.find(criteria))
                self._volume_trees[key] = subtree[0] if subtree else None
            root = self._volume_trees[key]
            if root is not None:
                tree[volume_id] = root
        return tree

    def get_tree_by_folder_id(self, folder_id: int) -> List[FolderNode]:
        parent = self.store.get_by_id(folder_id)
        if parent is None:
            return []
        descendants = self.store.get_all_descendant_folders(parent)
        return build_tree([parent, *descendants])

    def clear(self) -> None:
        self._volume_trees.clear()
