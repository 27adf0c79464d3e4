"""Parser module for gogroup.

This module extracts the import declarations at the top of a Go source file,
together with the lines they occupy, and assigns each of them a group.

Only the package clause and the import declarations are read; scanning stops
at the first declaration that is not an import.
"""

import ast
import bisect
from dataclasses import dataclass
import logging
import re
from typing import Iterator
from typing import List
from typing import NamedTuple
from typing import Optional

from gogroup.rules import Grouper

LOG = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"""
    (?P<space>[ \t\r\n\ufeff]+)
  | (?P<comment>//[^\n]*|/\*.*?\*/)
  | (?P<string>"(?:[^"\\\n]|\\.)*"|`[^`]*`)
  | (?P<unterminated>/\*|["`])
  | (?P<ident>[^\W\d]\w*)
  | (?P<punct>.)
""", re.VERBOSE | re.DOTALL)


class ParseError(Exception):
    """Raised when the import block of a file cannot be parsed."""

    def __init__(self, file_name: str, line: int, message: str):
        super().__init__(f"{file_name}:{line + 1}: {message}")
        self.file_name = file_name
        self.line = line
        self.message = message


@dataclass(frozen=True)
class GroupedImport:
    """An import statement with a group.

    ``start_line`` and ``end_line`` are zero-based and inclusive: ``end_line``
    is the last line of the statement, not the line after. ``start_line``
    points at the doc comment when the import has one.
    """

    path: str
    start_line: int
    end_line: int
    group: int
    named: bool = False
    name: Optional[str] = None

    @property
    def sort_name(self) -> str:
        """The alias, or the last element of the path for plain imports."""
        if self.named:
            return self.name or ''
        return self.path.rsplit('/', 1)[-1]


class Token(NamedTuple):
    kind: str
    value: str
    line: int
    end_line: int


class ImportSpec(NamedTuple):
    path: str
    name: Optional[str]
    start_line: int
    end_line: int


class _Scanner:
    """Split Go source into the few token kinds the import block needs."""

    def __init__(self, file_name: str, source: str):
        self.file_name = file_name
        self.source = source
        self._line_starts = [0] + [m.end() for m in re.finditer('\n', source)]

    def line_of(self, offset: int) -> int:
        return bisect.bisect_right(self._line_starts, offset) - 1

    def tokens(self) -> Iterator[Token]:
        pos = 0
        while pos < len(self.source):
            match = _TOKEN_RE.match(self.source, pos)
            kind = match.lastgroup
            start, pos = match.start(), match.end()
            if kind == 'space':
                continue
            if kind == 'unterminated':
                what = 'comment' if match.group() == '/*' else 'string literal'
                raise ParseError(self.file_name, self.line_of(start), f"{what} not terminated")
            yield Token(kind, match.group(), self.line_of(start), self.line_of(pos - 1))


class _ImportReader:

    def __init__(self, file_name: str, source: str):
        self.file_name = file_name
        self._tokens = _Scanner(file_name, source).tokens()
        self._comments: List[Token] = []
        self._prev_line = -1
        self.tok: Optional[Token] = None
        self._next()

    def _next(self) -> None:
        """Advance to the next non-comment token, remembering comments."""
        if self.tok is not None:
            self._prev_line = self.tok.end_line
        self._comments = []
        for token in self._tokens:
            if token.kind == 'comment':
                self._comments.append(token)
                continue
            self.tok = token
            return
        self.tok = None

    def _error(self, message: str) -> ParseError:
        line = self.tok.line if self.tok is not None else self._prev_line
        return ParseError(self.file_name, max(line, 0), message)

    def _at(self, kind: str, value: Optional[str] = None) -> bool:
        return (self.tok is not None and self.tok.kind == kind
                and (value is None or self.tok.value == value))

    def _expect(self, kind: str, value: Optional[str] = None) -> Token:
        if not self._at(kind, value):
            found = repr(self.tok.value) if self.tok is not None else 'EOF'
            raise self._error(f"expected {value or kind}, found {found}")
        token = self.tok
        self._next()
        return token

    def _skip_semicolons(self) -> None:
        while self._at('punct', ';'):
            self._next()

    def _doc_start(self) -> Optional[int]:
        """Return the first line of the comment group right above the token."""
        # Comments on the previous token's line belong to that token.
        comments = [c for c in self._comments if c.line > self._prev_line]
        if not comments or comments[-1].end_line != self.tok.line - 1:
            return None
        start = comments[-1].line
        for earlier in reversed(comments[:-1]):
            if earlier.end_line + 1 < start:
                break
            start = earlier.line
        return start

    def parse(self) -> List[ImportSpec]:
        if self.tok is None:
            raise ParseError(self.file_name, 0, "expected 'package', found EOF")
        self._expect('ident', 'package')
        self._expect('ident')
        self._skip_semicolons()

        specs: List[ImportSpec] = []
        while self._at('ident', 'import'):
            # A lone spec owns the whole declaration, keyword and doc included.
            decl_line = self._doc_start()
            if decl_line is None:
                decl_line = self.tok.line
            self._next()
            if self._at('punct', '('):
                self._next()
                while not self._at('punct', ')'):
                    if self.tok is None:
                        raise self._error("expected ')', found EOF")
                    specs.append(self._parse_spec(self._doc_start()))
                    self._skip_semicolons()
                self._next()
            else:
                specs.append(self._parse_spec(decl_line))
            self._skip_semicolons()
        return specs

    def _parse_spec(self, doc_line: Optional[int]) -> ImportSpec:
        if self.tok is None:
            raise self._error("expected import path, found EOF")
        start_line = self.tok.line
        name = None
        if self._at('ident'):
            name = self._expect('ident').value
        elif self._at('punct', '.'):
            name = self._expect('punct', '.').value
        literal = self._expect('string')
        path = self._unquote(literal)
        if doc_line is not None:
            start_line = doc_line
        return ImportSpec(path, name, start_line, literal.end_line)

    def _unquote(self, literal: Token) -> str:
        if literal.value.startswith('`'):
            path = literal.value[1:-1].replace('\r', '')
        else:
            try:
                path = ast.literal_eval(literal.value)
            except (SyntaxError, ValueError) as exc:
                raise ParseError(self.file_name, literal.line, f"invalid import path {literal.value}") from exc
        if not path:
            raise ParseError(self.file_name, literal.line, f"invalid import path {literal.value}")
        return path


def extract_imports(file_name: str, source: str) -> List[ImportSpec]:
    """Return the import specs of a Go file, in file order.

    Raises:
        ParseError: If the package clause or the import declarations are
            malformed.
    """
    return _ImportReader(file_name, source).parse()


def read_imports(file_name: str, source: str, grouper: Grouper) -> List[GroupedImport]:
    """Read the import statements of a Go file and assign them groups."""
    imports: List[GroupedImport] = []
    for spec in extract_imports(file_name, source):
        named = spec.name is not None
        imports.append(GroupedImport(
            path=spec.path,
            start_line=spec.start_line,
            end_line=spec.end_line,
            group=grouper.classify(spec.path, spec.name, named),
            named=named,
            name=spec.name,
        ))
    LOG.debug("%s: found %d imports", file_name, len(imports))
    return imports
