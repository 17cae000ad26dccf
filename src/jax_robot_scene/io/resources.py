"""Mesh resource resolution.

The tree builder only knows normalized mesh paths. A resolver turns such a
path into whatever the rendering side uses as a mesh handle, or None when it
cannot. Resolvers are plain callables.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

logger = logging.getLogger(__name__)


class MeshResolver(Protocol):
    def __call__(self, path: str) -> Optional[Any]:
        ...


def identity_resolver(path: str) -> str:
    """Resolve every path to itself."""
    return path


class DirectoryMeshResolver:
    """Resolve mesh paths against a directory of packaged meshes.

    Returns the file's :class:`~pathlib.Path` if it exists, else None.
    Lookups are cached per instance.

    Args:
        base_path: directory containing the converted meshes.
    """

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)
        self._cache: Dict[str, Optional[Path]] = {}

    def __call__(self, path: str) -> Optional[Path]:
        if path in self._cache:
            return self._cache[path]

        candidate = self.base_path / path
        resolved = candidate if candidate.is_file() else None
        if resolved is None:
            logger.debug("Mesh %s not found under %s", path, self.base_path)
        self._cache[path] = resolved
        return resolved

    def __repr__(self) -> str:
        return f"DirectoryMeshResolver({str(self.base_path)!r})"
