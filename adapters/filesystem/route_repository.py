from __future__ import annotations

from pathlib import Path

from filelock import FileLock
from lxml import etree

from adapters.filesystem.json_utils import write_bytes_atomic
from domain.ports.repositories import RouteRepository
from domain.xml_nodes import create_xml_parser


class FileSystemRouteRepository(RouteRepository):
    def list_paths(self, directory: Path) -> list[Path]:
        if not directory.exists():
            return []
        return sorted(path for path in directory.glob("*.xml") if path.is_file())

    def load(self, path: Path) -> etree._ElementTree:
        if not path.exists():
            msg = f"Route document not found: {path}"
            raise FileNotFoundError(msg)
        try:
            return etree.parse(str(path), parser=create_xml_parser())
        except etree.XMLSyntaxError as exc:
            msg = f"Route document {path} is not well-formed: {exc}"
            raise ValueError(msg) from exc

    def save(self, document: etree._ElementTree, path: Path) -> None:
        lock_path = path.with_suffix(f"{path.suffix}.lock")
        content = etree.tostring(document, encoding="UTF-8", xml_declaration=True)
        with FileLock(str(lock_path)):
            write_bytes_atomic(path, content)

    def resolve(self, directory: Path, name: str) -> Path | None:
        candidate = directory / f"{Path(name).stem}.xml"
        if candidate.parent != directory or not candidate.exists():
            return None
        return candidate
