"""
Centralized file I/O utilities.

- Single place for encoding handling
- Use Path.read_text() / Path.write_text() consistently (no raw open/read)
"""

import fnmatch
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .config import DEFAULT_FILE_ENCODING

logger = logging.getLogger(__name__)


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    return p.read_text(encoding=DEFAULT_FILE_ENCODING)


def read_json_file(path: Union[Path, str]) -> Any:
    """Read and parse a JSON file."""
    return json.loads(read_source_file(path))


def write_json_file(path: Union[Path, str], data: Any) -> None:
    """Serialize data as two-space indented JSON with a trailing newline."""
    p = Path(path) if not isinstance(path, Path) else path
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, indent=2) + "\n", encoding=DEFAULT_FILE_ENCODING)


def iter_files(root: Union[Path, str], patterns: Iterable[str]) -> List[str]:
    """
    List files under root (as posix paths relative to root) matching any glob.

    Patterns use fnmatch semantics against the relative path, so `**/*.html`
    and `*.html` both match nested files.
    """
    root_path = Path(root)
    patterns = list(patterns)
    matches = []
    for path in sorted(root_path.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(root_path).as_posix()
        if any(fnmatch.fnmatch(rel, pattern) for pattern in patterns):
            matches.append(rel)
    return matches


def write_results(
    out_dir: Union[Path, str],
    results: Dict[str, Optional[str]],
    delete_patterns: Iterable[str] = (),
) -> None:
    """
    Write converted files under out_dir.

    A path mapped to None is deleted. Files matching any of delete_patterns
    are removed afterwards, unless they were just written.
    """
    out_path = Path(out_dir)
    written = set()
    for rel_path, contents in sorted(results.items()):
        target = out_path / rel_path
        if contents is None:
            if target.exists():
                logger.debug(f"Deleting {target}")
                target.unlink()
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(contents, encoding=DEFAULT_FILE_ENCODING)
        written.add(rel_path)
        logger.debug(f"Wrote {target}")

    delete_patterns = list(delete_patterns)
    if not delete_patterns:
        return
    for rel_path in iter_files(out_path, delete_patterns):
        if rel_path in written:
            continue
        logger.debug(f"Deleting {rel_path} (matched --delete-files)")
        (out_path / rel_path).unlink()
