"""
Fixture trees for packing experiments.

A fixture is described in YAML as a nested directory spec::

    name: sample-files
    files:
      - name: small
        size: 4KB
        count: 3
      - size: 25MB
    folders:
      - name: nested
        files:
          - name: blob.bin
            size: 1MiB

Files are created sparse (truncated to size), so large fixtures are cheap.
Unnamed files are called ``"<size> file"``; when ``count`` > 1 each copy
gets a ``_001``, ``_002``, ... suffix.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .sizeutil import parse_size


@dataclass
class FileSpec:
    size: str
    name: str = ""
    count: int = 1


@dataclass
class DirectorySpec:
    name: str
    files: List[FileSpec] = field(default_factory=list)
    folders: List["DirectorySpec"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DirectorySpec":
        if not isinstance(data, dict) or not data.get("name"):
            raise ValueError("Directory spec requires a 'name'")
        files = []
        for item in data.get("files") or []:
            if "size" not in item:
                raise ValueError(f"File spec in {data['name']!r} requires a 'size'")
            files.append(
                FileSpec(
                    size=str(item["size"]),
                    name=str(item.get("name") or ""),
                    count=int(item.get("count") or 1),
                )
            )
        folders = [cls.from_dict(sub) for sub in data.get("folders") or []]
        return cls(name=str(data["name"]), files=files, folders=folders)


def _create_file(path: Path, size: int) -> None:
    with open(path, "wb") as f:
        f.truncate(size)


def create_structure(spec: DirectorySpec, parent: Path) -> List[Path]:
    current = parent / spec.name
    os.makedirs(current, mode=0o700, exist_ok=True)
    created: List[Path] = []
    for fs in spec.files:
        size = parse_size(fs.size)
        count = max(1, fs.count)
        base = fs.name or f"{fs.size} file"
        for i in range(count):
            name = f"{base}_{i + 1:03d}" if count > 1 else base
            path = current / name
            _create_file(path, size)
            created.append(path)
    for sub in spec.folders:
        created.extend(create_structure(sub, current))
    return created


def load_spec(spec_path: str) -> DirectorySpec:
    with open(spec_path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {spec_path}: {exc}") from exc
    return DirectorySpec.from_dict(data)


def generate(spec_path: str, dist_dir: str = "dist") -> Path:
    """Build the tree described by ``spec_path`` under ``dist_dir``.

    An existing tree with the same root name is removed first.

    Returns:
        The root directory of the generated tree.
    """
    spec = load_spec(spec_path)
    dist = Path(dist_dir)
    root = dist / spec.name
    if root.exists():
        shutil.rmtree(root)
    dist.mkdir(parents=True, exist_ok=True)
    create_structure(spec, dist)
    return root
