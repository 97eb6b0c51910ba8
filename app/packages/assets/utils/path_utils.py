"""Path utilities for folder paths inside a volume.

Rules shared by the folder services:
- Folder paths are volume-relative, never start with '/', and always end with '/';
  the volume root is the empty string '';
- Physical directory calls take the folder path with its trailing slash trimmed.
"""

from __future__ import annotations

import posixpath


def split_segments(full_path: str | None) -> list[str]:
    """Split a logical path into its ordered, non-empty segments."""
    return [part for part in (full_path or "").split("/") if part]


def norm_folder_path(p: str | None) -> str:
    segments = split_segments(p)
    return "".join(f"{segment}/" for segment in segments)


def join_folder_path(parent_path: str | None, name: str) -> str:
    return f"{parent_path or ''}{name}/"


def parent_folder_path(path: str) -> str:
    """'a/b/c/' -> 'a/b/'; 'a/' -> ''."""
    parent = posixpath.dirname(path.rstrip("/"))
    return f"{parent}/" if parent else ""


def dir_key(path: str | None) -> str:
    """Folder path as handed to volume backends: no trailing slash."""
    return (path or "").rstrip("/")


def replace_path_prefix(path: str, old_prefix: str, new_prefix: str) -> str:
    """Replace ``old_prefix`` at the start of ``path`` exactly once."""
    if not path.startswith(old_prefix):
        return path
    return new_prefix + path[len(old_prefix):]


def is_valid_segment(name: str | None) -> bool:
    if not name or not name.strip():
        return False
    return "/" not in name and "\\" not in name and name not in (".", "..")
