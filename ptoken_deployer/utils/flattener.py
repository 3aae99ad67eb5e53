"""
Solidity source flattening

Inlines every import of an entry file into a single source so it can be
verified manually on a block explorer.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from .exceptions import FlattenError

LOG = logging.getLogger(__name__)

IMPORT_RE = re.compile(
    r'^\s*import\s+(?:[^"\';]*?\bfrom\s+)?["\']([^"\']+)["\']\s*;\s*$',
    re.MULTILINE
)
SPDX_RE = re.compile(r'^\s*//\s*SPDX-License-Identifier:.*$', re.MULTILINE)
PRAGMA_RE = re.compile(r'^\s*pragma\s+solidity\s+[^;]+;\s*$', re.MULTILINE)


def _first_match(pattern, sources) -> Optional[str]:
    for _, source in sources:
        match = pattern.search(source)
        if match:
            return match.group(0).strip()
    return None


class Flattener:
    """Resolves imports against a list of source directories"""

    def __init__(self, sources_dirs: Iterable[Union[str, Path]]):
        self.sources_dirs: List[Path] = [Path(d) for d in sources_dirs]

    def resolve(self, import_path: str, importer: Path) -> Path:
        """
        Locate an imported file.

        Relative imports resolve against the importing file, everything else
        against each source directory in order.

        Raises:
            FlattenError: No candidate exists
        """
        if import_path.startswith("."):
            candidates = [importer.parent / import_path]
        else:
            candidates = [d / import_path for d in self.sources_dirs]

        for candidate in candidates:
            if candidate.is_file():
                return candidate.resolve()

        raise FlattenError(
            f"Cannot resolve import '{import_path}' from {importer}",
            details={"import": import_path, "importer": str(importer)}
        )

    def _collect(self, path: Path, seen: Set[Path], ordered: List[Path]) -> None:
        if path in seen:
            return
        seen.add(path)
        try:
            source = path.read_text()
        except OSError as e:
            raise FlattenError(f"Cannot read {path}: {e}", cause=e)

        for import_path in IMPORT_RE.findall(source):
            self._collect(self.resolve(import_path, path), seen, ordered)
        ordered.append(path)

    def flatten(self, entry: Union[str, Path]) -> str:
        """Return the flattened source of entry, dependencies first"""
        entry_path = Path(entry)
        if not entry_path.is_file():
            raise FlattenError(f"Contract source not found: {entry_path}")

        ordered: List[Path] = []
        self._collect(entry_path.resolve(), set(), ordered)
        LOG.info(f"Flattening {len(ordered)} source files")

        sources = [(path, path.read_text()) for path in ordered]
        # The entry file is last and decides the header
        license_line = _first_match(SPDX_RE, reversed(sources))
        pragma_line = _first_match(PRAGMA_RE, reversed(sources))

        bodies = []
        for path, source in sources:
            body = IMPORT_RE.sub("", source)
            body = SPDX_RE.sub("", body)
            body = PRAGMA_RE.sub("", body)
            bodies.append(f"// File: {path.name}\n\n{body.strip()}\n")

        header = [line for line in (license_line, pragma_line) if line]
        return "\n".join(header) + "\n\n" + "\n".join(bodies)


def flatten_to_file(entry: Union[str, Path], sources_dirs: Iterable[Union[str, Path]], output: Union[str, Path]) -> Path:
    """Flatten entry and write the result to output"""
    flattened = Flattener(sources_dirs).flatten(entry)
    output_path = Path(output)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(flattened)
    except OSError as e:
        raise FlattenError(f"Cannot write {output_path}: {e}", cause=e)
    LOG.info(f"Flattened source written to {output_path}")
    return output_path
