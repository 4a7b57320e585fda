from __future__ import annotations

from typing import List


def norm_path(p: str) -> str:
    """Normalize archive paths to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError("Path may not contain '..'")
    return "/".join(parts)


def stored_path(source: str) -> str:
    """Archive path for a store path: like norm_path, but '..' segments are dropped."""
    parts = [q for q in source.replace("\\", "/").split("/") if q not in ("", ".", "..")]
    return "/".join(parts)


def split_parts(p: str) -> List[str]:
    return [q for q in p.split("/") if q not in ("", ".")]


def join(base: str, name: str) -> str:
    if not base:
        return name
    if not name:
        return base
    return base.rstrip("/") + "/" + name.lstrip("/")


def basename(p: str) -> str:
    return p.rstrip("/").rsplit("/", 1)[-1]


def parent(p: str) -> str:
    """Parent of a store path; '' for a bare relative name, '/' for a top-level absolute one."""
    stripped = p.rstrip("/")
    if "/" not in stripped:
        return ""
    head = stripped.rsplit("/", 1)[0]
    return head or "/"
