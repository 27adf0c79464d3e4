"""Top-level package for gogroup.

This package exposes the core API for checking and fixing the grouping of
import statements in Go source files.
"""

__version__ = "0.1.0"

from gogroup.core import Processor
from gogroup.core import ValidationError
from gogroup.core import expand_paths
from gogroup.core import iter_go_files
from gogroup.core import process_file
from gogroup.core import render_import_block
from gogroup.core import rewrite_imports
from gogroup.parser import GroupedImport
from gogroup.parser import ParseError
from gogroup.parser import read_imports
from gogroup.rules import ConfigError
from gogroup.rules import GroupRule
from gogroup.rules import Grouper
from gogroup.rules import PatternError
from gogroup.rules import parse_order_spec


__all__ = [
    "Grouper",
    "GroupRule",
    "parse_order_spec",
    "ConfigError",
    "PatternError",
    "GroupedImport",
    "ParseError",
    "read_imports",
    "Processor",
    "ValidationError",
    "render_import_block",
    "rewrite_imports",
    "process_file",
    "iter_go_files",
    "expand_paths",
]
