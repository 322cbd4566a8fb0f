from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from lxml import etree


class RouteRepository(Protocol):
    def list_paths(self, directory: Path) -> Sequence[Path]: ...

    def load(self, path: Path) -> etree._ElementTree: ...

    def save(self, document: etree._ElementTree, path: Path) -> None: ...
