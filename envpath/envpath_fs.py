from __future__ import annotations
import os
from pathlib import Path
from typing import Optional, Union

# Explicit filesystem queries on an assembled path. Resolution itself never
# calls these; `??` goes through Lookups.path_exists instead.

PathLike = Union[str, Path, None]


def _norm(path: PathLike) -> Optional[str]:
    if path is None:
        return None
    text = os.fspath(path)
    return text or None


def path_exists(path: PathLike) -> bool:
    p = _norm(path)
    return p is not None and os.path.exists(p)


def path_is_dir(path: PathLike) -> bool:
    p = _norm(path)
    return p is not None and os.path.isdir(p)


def path_is_file(path: PathLike) -> bool:
    p = _norm(path)
    return p is not None and os.path.isfile(p)


def path_metadata(path: PathLike) -> Optional[os.stat_result]:
    """`os.stat` of the path, or None when there is no path or nothing at it."""
    p = _norm(path)
    if p is None:
        return None
    try:
        return os.stat(p)
    except FileNotFoundError:
        return None
    except NotADirectoryError:
        return None


__all__ = [
    "path_exists",
    "path_is_dir",
    "path_is_file",
    "path_metadata",
]
