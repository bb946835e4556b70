from __future__ import annotations

import os
from pathlib import Path

from .config import Category, ServerConfig
from .errors import ClassificationError, DirectoryError


class MediaStore:
    """Maps uploaded file names to category directories and writes them out."""

    def __init__(self, config: ServerConfig, root: str | os.PathLike[str] = "."):
        self.root = Path(root)
        self._by_ext: dict[str, Category] = {}
        for cat in config.categories:
            for ext in cat.extensions:
                self._by_ext[ext.lower()] = cat

    def classify(self, file_name: str) -> Category:
        unsafe = "\\" in file_name or "\x00" in file_name
        if file_name in ("", ".", "..") or os.path.basename(file_name) != file_name or unsafe:
            raise ClassificationError(f"refusing file name {file_name!r}")
        ext = os.path.splitext(file_name)[1].lower()
        try:
            return self._by_ext[ext]
        except KeyError:
            raise ClassificationError(f"unsupported file extension {ext!r} for {file_name!r}") from None

    def target_dir(self, category: Category) -> Path:
        return self.root / category.path

    def ensure_directory(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryError(f"cannot create {path}: {e}") from e

    def persist(self, path: Path, data: bytes) -> None:
        # overwrites an existing file of the same name
        with open(path, "wb") as out:
            out.write(data)
