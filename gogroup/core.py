#!/usr/bin/env python3
"""Core utilities for gogroup. This module checks the grouping and order of
the imports of Go source files against a grouper, and rewrites the import
block of files that are out of order. It also exposes helpers to find the Go
files of a project and to process a single file on disk.
"""
from __future__ import annotations
import logging
from pathlib import Path
import re
from typing import Iterable
from typing import Iterator
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Sequence
from typing import Tuple

from gogroup.parser import GroupedImport
from gogroup.parser import ParseError
from gogroup.parser import read_imports
from gogroup.rules import Grouper

LOG = logging.getLogger(__name__)

DEFAULT_IGNORE = ('vendor', 'testdata')

_COMMENT_RE = re.compile(r'^(//|/\*|\*)|\*/$')
_CLOSE_RE = re.compile(r'^\)\s*(//.*)?$')
_OPEN_RE = re.compile(r'^import\s*\(\s*(//.*)?$')


class ValidationError(NamedTuple):
    """The first import of a file found out of place.

    ``line`` is the zero-based first line of the import.
    """

    line: int
    message: str
    import_path: str

    def format(self, file_name: str) -> str:
        """Return the diagnostic line printed for a file."""
        return f"{file_name}:{self.line + 1}: {self.message} at {quote(self.import_path)}"


def quote(path: str) -> str:
    """Quote an import path the way Go writes string literals."""
    escaped = path.replace('\\', '\\\\').replace('"', '\\"')
    escaped = escaped.replace('\n', '\\n').replace('\t', '\\t')
    return f'"{escaped}"'


def same_import(a: GroupedImport, b: GroupedImport) -> bool:
    return a.path == b.path and a.named == b.named and a.name == b.name


def render_import_block(imports: Sequence[GroupedImport], lines: Sequence[str]) -> List[str]:
    """Render the lines of an import block from imports in canonical order.

    The original lines of every import are kept verbatim. A blank line
    separates imports of different groups.
    """
    blank = ''
    if imports and lines[imports[0].end_line].endswith('\r'):
        blank = '\r'

    new_lines: List[str] = []
    current_group: Optional[int] = None
    for imp in imports:
        if current_group is not None and imp.group != current_group:
            new_lines.append(blank)
        new_lines.extend(lines[imp.start_line:imp.end_line + 1])
        current_group = imp.group
    return new_lines


def rewrite_imports(lines: List[str], start: int, end: int, new_imports: List[str]) -> List[str]:
    """Rewrite the import block within lines[start:end] with new_imports."""
    return lines[:start] + new_imports + lines[end:]


def check_rewritable(file_name: str, imports: Sequence[GroupedImport], lines: Sequence[str]) -> None:
    """Make sure replacing the import block loses nothing but separators.

    Every import must own its lines alone. Lines of the block owned by no
    import may only be blank, comments, or a ``)`` closing one parenthesized
    declaration directly followed by the ``import (`` opening the next.

    Raises:
        ParseError: If the block cannot be rewritten safely.
    """
    owned = set()
    prev: Optional[GroupedImport] = None
    for imp in imports:
        if prev is not None and imp.start_line <= prev.end_line:
            raise ParseError(file_name, imp.start_line,
                             f"cannot rewrite imports sharing a line ({quote(prev.path)} and {quote(imp.path)})")
        owned.update(range(imp.start_line, imp.end_line + 1))
        prev = imp

    start, end = import_block_span(imports)
    open_paren: Optional[int] = None
    for number in range(start, end):
        if number in owned:
            if open_paren is not None:
                break
            continue
        text = lines[number].strip()
        if not text or _COMMENT_RE.match(text):
            continue
        if open_paren is None and _CLOSE_RE.match(text):
            open_paren = number
        elif open_paren is not None and _OPEN_RE.match(text):
            open_paren = None
        else:
            raise ParseError(file_name, number, f"cannot rewrite import block around {text!r}")
    if open_paren is not None:
        raise ParseError(file_name, open_paren, "cannot merge an import declaration with the one after it")


def import_block_span(imports: Sequence[GroupedImport]) -> Tuple[int, int]:
    """Return the (start, end) line slice covered by the imports."""
    start = min(imp.start_line for imp in imports)
    end = max(imp.end_line for imp in imports) + 1
    return start, end


class Processor:
    """Validate and reformat the imports of Go files.

    Args:
        grouper: Assigns a group to every import.
        sort_by_name: Order imports of a group by alias, or by the last
            element of the path for plain imports, rather than by path.
        check_spacing: Also require a blank line between groups and none
            inside a group.
    """

    def __init__(self, grouper: Grouper, sort_by_name: bool = False, check_spacing: bool = False):
        self.grouper = grouper
        self.sort_by_name = sort_by_name
        self.check_spacing = check_spacing

    def read_imports(self, file_name: str, source: str) -> List[GroupedImport]:
        return read_imports(file_name, source, self.grouper)

    def sort_key(self, imp: GroupedImport) -> Tuple[int, str]:
        if self.sort_by_name:
            return imp.group, imp.sort_name
        return imp.group, imp.path

    def canonical_order(self, imports: Iterable[GroupedImport]) -> List[GroupedImport]:
        """Return the imports in the order they should appear in."""
        return sorted(imports, key=self.sort_key)

    def validate_imports(self, imports: Sequence[GroupedImport]) -> Optional[ValidationError]:
        """Return the first ordering problem of imports given in file order.

        The import reported is the one that belongs at the first position
        where the file's order and the canonical order differ, that is the
        import missing from that position (``canonical[i]``), not the one
        found there. Its own start line is reported.
        """
        canonical = self.canonical_order(imports)
        for observed, expected in zip(imports, canonical):
            if same_import(observed, expected):
                continue
            if observed.group != expected.group:
                message = "Import groups out of order"
            else:
                message = "Imports out of order within group"
            LOG.debug("%r belongs before %r", expected.path, observed.path)
            return ValidationError(expected.start_line, message, expected.path)

        if self.check_spacing:
            return self._validate_spacing(imports)
        return None

    def _validate_spacing(self, imports: Sequence[GroupedImport]) -> Optional[ValidationError]:
        for prev, cur in zip(imports, imports[1:]):
            adjacent = cur.start_line == prev.end_line + 1
            if cur.group == prev.group and not adjacent:
                return ValidationError(cur.start_line, "Extra blank line in import group", cur.path)
            if cur.group != prev.group and adjacent:
                return ValidationError(cur.start_line, "Missing blank line between import groups", cur.path)
        return None

    def reformat_imports(self, imports: Sequence[GroupedImport], lines: Sequence[str]) -> Optional[List[str]]:
        """Return the corrected import block, or None if nothing has to change.

        The block replaces the lines from the first import's start line to
        the last import's end line.
        """
        if self.validate_imports(imports) is None:
            return None
        return render_import_block(self.canonical_order(imports), lines)

    def validate(self, file_name: str, source: str) -> Optional[ValidationError]:
        """Check the imports of a Go source.

        Raises:
            ParseError: If the import block cannot be parsed.
        """
        return self.validate_imports(self.read_imports(file_name, source))

    def reformat(self, file_name: str, source: str) -> Optional[str]:
        """Return the source with its imports reordered, or None if it is fine.

        Raises:
            ParseError: If the import block cannot be parsed, or cannot be
                rewritten without losing code.
        """
        imports = self.read_imports(file_name, source)
        lines = source.split('\n')
        new_block = self.reformat_imports(imports, lines)
        if new_block is None:
            return None
        check_rewritable(file_name, imports, lines)
        start, end = import_block_span(imports)
        LOG.debug("%s: rewriting lines %d-%d", file_name, start + 1, end)
        return '\n'.join(rewrite_imports(lines, start, end, new_block))


def process_file(file_path: str, processor: Processor, apply: bool = False) -> Tuple[bool, Optional[ValidationError]]:
    """Check a single Go file, fixing it in place if apply is True.

    Returns (modified, error). When checking, error is the ordering problem
    found, if any, and modified tells whether the file needs rewriting. When
    applying, modified tells whether the file was rewritten and error is
    always None.

    Raises:
        OSError: If the file cannot be read or written.
        ParseError: If the import block cannot be parsed.
    """
    # newline='' keeps CRLF line endings intact.
    with open(file_path, "r", encoding="utf-8", newline="") as f:
        source = f.read()

    if not apply:
        error = processor.validate(str(file_path), source)
        return error is not None, error

    new_source = processor.reformat(str(file_path), source)
    if new_source is None:
        return False, None
    with open(file_path, "w", encoding="utf-8", newline="") as f:
        f.write(new_source)
    return True, None


def iter_go_files(root: str, ignore: Optional[Iterable[str]] = None) -> Iterator[Path]:
    """Yield Go files under the given root directory, in sorted order.

    Directories named in ignore (vendor and testdata by default) and hidden
    directories are skipped.
    """
    ignore_set = set(DEFAULT_IGNORE if ignore is None else ignore)
    root_path = Path(root)
    for path in sorted(root_path.rglob('*.go')):
        parts = path.relative_to(root_path).parts[:-1]
        if any(part in ignore_set or part.startswith('.') for part in parts):
            continue
        if path.is_file():
            yield path


def expand_paths(paths: Iterable[str], ignore: Optional[Iterable[str]] = None) -> List[Path]:
    """Expand the files and directories given on the command line."""
    files: List[Path] = []
    for path in paths:
        path_obj = Path(path)
        if path_obj.is_dir():
            files.extend(iter_go_files(path, ignore))
        else:
            files.append(path_obj)
    return files
