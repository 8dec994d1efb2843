from __future__ import annotations

from models.errors import PathError


def canonicalize(path: str) -> str:
    """Normalize a forward-slash relative path.

    Collapses empty and ``.`` segments. Absolute paths, backslashes, NUL bytes
    and ``..`` segments are rejected with :class:`PathError`.
    """
    if not path:
        raise PathError(path, "path is empty")
    if path.startswith("/"):
        raise PathError(path, "absolute paths are not allowed")
    if "\\" in path or "\x00" in path:
        raise PathError(path, "path contains an illegal character")

    segments: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise PathError(path, "parent traversal is not allowed")
        segments.append(segment)

    if not segments:
        raise PathError(path, "path does not name a file")
    return "/".join(segments)
