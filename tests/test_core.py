import pytest

from gogroup import core
from gogroup.core import Processor
from gogroup.core import ValidationError
from gogroup.parser import GroupedImport
from gogroup.parser import ParseError
from gogroup.rules import Grouper


WORKED_EXAMPLE = (
    'package main\n'
    '\n'
    'import (\n'
    '\t"fmt"\n'
    '\t"encoding/json"\n'
    '\tbox "rice/box"\n'
    ')\n'
)

SOURCES = [
    WORKED_EXAMPLE,
    'package main\n\nimport (\n\t"encoding/json"\n\t"fmt"\n\n\tbox "rice/box"\n)\n',
    'package main\n\nimport (\n\t"github.com/pkg/errors"\n\t"os"\n)\n',
    'package main\n\nimport (\n\t"os"\n\t"github.com/pkg/errors"\n)\n',
    'package main\n\nimport "os"\nimport "fmt"\n\nfunc main() {}\n',
    'package main\n\nimport (\n\t"fmt"\n\n\t"os"\n\t"github.com/me/x"\n)\n',
    'package main\n\nfunc main() {}\n',
]


def _processors():
    return [
        Processor(Grouper()),
        Processor(Grouper(), sort_by_name=True),
        Processor(Grouper(), check_spacing=True),
        Processor(Grouper.from_spec("std,prefix=github.com/me,other")),
    ]


def test_worked_example_reports_single_error():
    processor = Processor(Grouper())
    error = processor.validate("main.go", WORKED_EXAMPLE)
    assert error == ValidationError(4, "Imports out of order within group", "encoding/json")
    assert error.format("main.go") == 'main.go:5: Imports out of order within group at "encoding/json"'


def test_worked_example_reformat():
    processor = Processor(Grouper())
    assert processor.reformat("main.go", WORKED_EXAMPLE) == (
        'package main\n'
        '\n'
        'import (\n'
        '\t"encoding/json"\n'
        '\t"fmt"\n'
        '\n'
        '\tbox "rice/box"\n'
        ')\n'
    )


def test_groups_out_of_order():
    source = 'package main\n\nimport (\n\t"github.com/pkg/errors"\n\t"os"\n)\n'
    error = Processor(Grouper()).validate("main.go", source)
    assert error == ValidationError(4, "Import groups out of order", "os")


def test_prefix_group_is_ordered_before_other():
    source = 'package main\n\nimport (\n\t"os"\n\n\t"golang.org/x/net"\n\t"github.com/me/foo"\n)\n'
    processor = Processor(Grouper.from_spec("std,prefix=github.com/me,other"))
    assert processor.validate("main.go", source) == ValidationError(
        6, "Import groups out of order", "github.com/me/foo")
    assert processor.reformat("main.go", source) == (
        'package main\n\nimport (\n\t"os"\n\n\t"github.com/me/foo"\n\n\t"golang.org/x/net"\n)\n')


def test_only_first_problem_is_reported():
    source = 'package main\n\nimport (\n\t"os"\n\t"fmt"\n\t"github.com/b/b"\n\t"github.com/a/a"\n)\n'
    error = Processor(Grouper()).validate("main.go", source)
    assert error.import_path == "fmt"


@pytest.mark.parametrize("source", SOURCES)
def test_validate_and_reformat_agree(source):
    for processor in _processors():
        error = processor.validate("main.go", source)
        assert (error is None) == (processor.reformat("main.go", source) is None)


@pytest.mark.parametrize("source", SOURCES)
def test_reformat_is_idempotent(source):
    for processor in _processors():
        fixed = processor.reformat("main.go", source)
        if fixed is None:
            continue
        assert processor.validate("main.go", fixed) is None
        assert processor.reformat("main.go", fixed) is None


def test_sorted_file_needs_no_change():
    source = SOURCES[1]
    processor = Processor(Grouper())
    assert processor.validate("main.go", source) is None
    assert processor.reformat("main.go", source) is None


def test_equal_sort_keys_keep_file_order():
    source = 'package main\n\nimport (\n\t"b/log"\n\t"a/log"\n)\n'
    assert Processor(Grouper(), sort_by_name=True).validate("main.go", source) is None
    assert Processor(Grouper()).validate("main.go", source) is not None


def test_sort_by_name_uses_last_path_element():
    source = 'package main\n\nimport (\n\t"github.com/z/alpha"\n\t"github.com/a/zeta"\n)\n'
    assert Processor(Grouper(), sort_by_name=True).validate("main.go", source) is None
    error = Processor(Grouper()).validate("main.go", source)
    assert error == ValidationError(4, "Imports out of order within group", "github.com/a/zeta")


def test_aliased_imports_sort_by_path_unless_sort_by_name():
    source = 'package main\n\nimport (\n\tb "x.com/a"\n\ta "x.com/b"\n)\n'
    assert Processor(Grouper()).validate("main.go", source) is None
    error = Processor(Grouper(), sort_by_name=True).validate("main.go", source)
    assert error == ValidationError(4, "Imports out of order within group", "x.com/b")


def test_comments_move_with_their_import():
    source = (
        'package main\n'
        '\n'
        'import (\n'
        '\t// os is needed.\n'
        '\t"os" // trailing\n'
        '\t// fmt doc\n'
        '\t"fmt"\n'
        ')\n'
        '\n'
        'func main() {}\n'
    )
    fixed = Processor(Grouper()).reformat("main.go", source)
    assert fixed == (
        'package main\n'
        '\n'
        'import (\n'
        '\t// fmt doc\n'
        '\t"fmt"\n'
        '\t// os is needed.\n'
        '\t"os" // trailing\n'
        ')\n'
        '\n'
        'func main() {}\n'
    )
    assert '\t// os is needed.\n\t"os" // trailing\n' in fixed


def test_single_declarations_are_reordered():
    source = 'package main\n\nimport "os"\nimport "fmt"\n\nfunc main() {}\n'
    fixed = Processor(Grouper()).reformat("main.go", source)
    assert fixed == 'package main\n\nimport "fmt"\nimport "os"\n\nfunc main() {}\n'


def test_separate_blocks_are_merged():
    source = 'package main\nimport (\n\t"os"\n)\nimport (\n\t"fmt"\n)\n'
    fixed = Processor(Grouper()).reformat("main.go", source)
    assert fixed == 'package main\nimport (\n\t"fmt"\n\t"os"\n)\n'


@pytest.mark.parametrize("source", [
    'package main\n\nimport ("os"; "fmt")\n\nfunc main() {}\n',
    'package main\n\nimport (\n\t"os"; "fmt"\n)\n',
])
def test_imports_sharing_a_line_are_not_rewritten(source):
    processor = Processor(Grouper())
    assert processor.validate("main.go", source) is not None
    with pytest.raises(ParseError, match="sharing a line"):
        processor.reformat("main.go", source)


def test_mixed_declarations_are_not_rewritten():
    source = 'package main\n\nimport (\n\t"os"\n)\n\nimport "fmt"\n\nfunc main() {}\n'
    with pytest.raises(ParseError) as excinfo:
        Processor(Grouper()).reformat("main.go", source)
    assert str(excinfo.value).startswith("main.go:5: ")


def test_single_then_parenthesized_declaration_is_not_rewritten():
    source = 'package main\n\nimport "os"\nimport (\n\t"fmt"\n)\n'
    with pytest.raises(ParseError, match="import \\("):
        Processor(Grouper()).reformat("main.go", source)


def test_comments_between_declarations_are_allowed():
    source = 'package main\nimport (\n\t"os"\n)\n\n// More.\nimport (\n\t"fmt"\n)\n'
    fixed = Processor(Grouper()).reformat("main.go", source)
    assert fixed == 'package main\nimport (\n\t"fmt"\n\t"os"\n)\n'


def test_crlf_line_endings_are_kept():
    source = 'package main\r\n\r\nimport (\r\n\t"github.com/x/y"\r\n\t"os"\r\n)\r\n'
    fixed = Processor(Grouper()).reformat("main.go", source)
    assert fixed == 'package main\r\n\r\nimport (\r\n\t"os"\r\n\r\n\t"github.com/x/y"\r\n)\r\n'


def test_spacing_is_ignored_by_default():
    source = 'package main\n\nimport (\n\t"fmt"\n\n\t"os"\n\t"github.com/me/x"\n)\n'
    processor = Processor(Grouper())
    assert processor.validate("main.go", source) is None
    assert processor.reformat("main.go", source) is None


def test_extra_blank_line_in_group():
    source = 'package main\n\nimport (\n\t"fmt"\n\n\t"os"\n)\n'
    processor = Processor(Grouper(), check_spacing=True)
    assert processor.validate("main.go", source) == ValidationError(5, "Extra blank line in import group", "os")
    assert processor.reformat("main.go", source) == 'package main\n\nimport (\n\t"fmt"\n\t"os"\n)\n'


def test_missing_blank_line_between_groups():
    source = 'package main\n\nimport (\n\t"os"\n\t"github.com/me/x"\n)\n'
    processor = Processor(Grouper(), check_spacing=True)
    assert processor.validate("main.go", source) == ValidationError(
        4, "Missing blank line between import groups", "github.com/me/x")
    assert processor.reformat("main.go", source) == (
        'package main\n\nimport (\n\t"os"\n\n\t"github.com/me/x"\n)\n')


def test_validate_imports_does_not_touch_records():
    imports = [
        GroupedImport("github.com/pkg/errors", 3, 3, 1),
        GroupedImport("fmt", 4, 4, 0),
    ]
    snapshot = list(imports)
    error = Processor(Grouper()).validate_imports(imports)
    assert error == ValidationError(4, "Import groups out of order", "fmt")
    assert imports == snapshot


def test_render_import_block():
    lines = ['package main', 'import (', '\t"a.com/x"', '\t"os"', '\t"fmt"', ')', '']
    imports = [
        GroupedImport("fmt", 4, 4, 0),
        GroupedImport("os", 3, 3, 0),
        GroupedImport("a.com/x", 2, 2, 1),
    ]
    assert core.render_import_block(imports, lines) == ['\t"fmt"', '\t"os"', '', '\t"a.com/x"']


def test_rewrite_imports_keeps_surrounding_lines():
    lines = ["a", "b", "c", "d"]
    assert core.rewrite_imports(lines, 1, 3, ["x"]) == ["a", "x", "d"]


def test_parse_error_propagates():
    with pytest.raises(ParseError):
        Processor(Grouper()).validate("bad.go", 'package main\nimport (\n\t"fmt"\n')


def test_process_file_check_does_not_modify(tmp_path):
    go_file = tmp_path / "main.go"
    go_file.write_text(WORKED_EXAMPLE)
    modified, error = core.process_file(str(go_file), Processor(Grouper()))
    assert modified
    assert error.import_path == "encoding/json"
    assert go_file.read_text() == WORKED_EXAMPLE


def test_process_file_apply_rewrites(tmp_path):
    go_file = tmp_path / "main.go"
    go_file.write_text(WORKED_EXAMPLE)
    modified, error = core.process_file(str(go_file), Processor(Grouper()), apply=True)
    assert modified
    assert error is None
    assert go_file.read_text() == SOURCES[1]

    modified, error = core.process_file(str(go_file), Processor(Grouper()), apply=True)
    assert not modified


def test_process_file_keeps_crlf(tmp_path):
    go_file = tmp_path / "main.go"
    go_file.write_bytes(b'package main\r\n\r\nimport (\r\n\t"os"\r\n\t"fmt"\r\n)\r\n')
    core.process_file(str(go_file), Processor(Grouper()), apply=True)
    assert go_file.read_bytes() == b'package main\r\n\r\nimport (\r\n\t"fmt"\r\n\t"os"\r\n)\r\n'


def test_iter_go_files_skips_vendor_and_hidden(tmp_path):
    for rel in ("a.go", "sub/b.go", "vendor/c.go", ".git/d.go", "sub/testdata/e.go", "sub/notes.txt"):
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("package x\n")
    found = [p.relative_to(tmp_path).as_posix() for p in core.iter_go_files(str(tmp_path))]
    assert found == ["a.go", "sub/b.go"]


def test_expand_paths_keeps_files(tmp_path):
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "a.go").write_text("package pkg\n")
    single = tmp_path / "main.go"
    single.write_text("package main\n")
    assert core.expand_paths([str(single), str(tmp_path / "pkg")]) == [single, tmp_path / "pkg" / "a.go"]
