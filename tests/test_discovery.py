"""Tests for loading commands and patterns from directories."""

import pytest

from pyclif.commands.discovery import declaration_from_module, load_module, load_patterns, load_structure
from pyclif.commands.models import CommandDeclaration, CommandGroup, FlagDeclaration
from pyclif.models import StructuralError

ADD = '''
describe = "Add a remote"
positionals = ["<name>", "[url]"]
flags = {"force": {"description": "Overwrite", "type": "boolean", "alias": "f"}}

def run(invocation):
    yield {"ns": "remote", "name": invocation.inputs["name"]}
'''

STATUS = '''
describe = "Show the status"

def run(invocation):
    yield {"ns": "status"}
'''

IO_PATTERNS = '''
patterns = {"read": {"ns": "io", "op": "read"}, "write": {"ns": "io", "op": "write"}}

def read(intent, settings):
    return "content"

def write(intent, settings):
    return len(intent["data"])

def _helper():
    return None
'''


class TestLoadStructure:
    """Tests for load_structure."""

    def test_tree(self, tmp_path, write_module):
        write_module("commands/status.py", STATUS)
        write_module("commands/remote/__init__.py", 'describe = "Manage remotes"\n')
        write_module("commands/remote/add.py", ADD)
        write_module("commands/_private.py", STATUS)
        write_module("commands/notes.txt", "ignored")

        errors = []
        tree = load_structure(tmp_path / "commands", errors)
        assert errors == []
        assert list(tree) == ["remote", "status"]
        assert isinstance(tree["status"], CommandDeclaration)
        assert tree["status"].description == "Show the status"

        remote = tree["remote"]
        assert isinstance(remote, CommandGroup)
        assert remote.description == "Manage remotes"
        add = remote.commands["add"]
        assert add.positionals == ["<name>", "[url]"]
        assert add.flags == [FlagDeclaration("force", "Overwrite", "boolean", alias="f")]

    def test_group_without_init(self, tmp_path, write_module):
        write_module("commands/remote/add.py", ADD)
        errors = []
        tree = load_structure(tmp_path / "commands", errors)
        assert tree["remote"].description is None
        assert "add" in tree["remote"].commands

    def test_syntax_error_recorded(self, tmp_path, write_module):
        write_module("commands/bad.py", "def run(:\n")
        write_module("commands/status.py", STATUS)
        errors = []
        tree = load_structure(tmp_path / "commands", errors)
        assert list(tree) == ["status"]
        assert len(errors) == 1
        assert isinstance(errors[0], StructuralError)
        assert "bad.py" in str(errors[0])

    def test_module_without_run(self, tmp_path, write_module):
        write_module("commands/empty.py", 'describe = "Nothing"\n')
        errors = []
        tree = load_structure(tmp_path / "commands", errors)
        assert tree["empty"].logic is None


def test_load_module_execution_error(write_module):
    path = write_module("boom.py", "raise RuntimeError('boom')\n")
    with pytest.raises(RuntimeError):
        load_module(path)


def test_declaration_from_module(write_module):
    module = load_module(write_module("cmd/add.py", ADD))
    decl = declaration_from_module(module)
    assert decl.description == "Add a remote"
    assert decl.logic is module.run
    assert decl.flags[0].aliases == ["f"]


class TestLoadPatterns:
    """Tests for load_patterns."""

    def test_pairs(self, tmp_path, write_module):
        write_module("patterns/io.py", IO_PATTERNS)
        errors = []
        pairs = load_patterns(tmp_path / "patterns", errors)
        assert errors == []
        assert [pattern for pattern, _ in pairs] == [{"ns": "io", "op": "read"}, {"ns": "io", "op": "write"}]
        assert [handler.__name__ for _, handler in pairs] == ["read", "write"]

    def test_unpaired_entries(self, tmp_path, write_module):
        write_module(
            "patterns/bad.py",
            'patterns = {"read": {"ns": "io"}, "orphan": {"ns": "x"}}\n'
            "def read(intent, settings):\n    return 1\n"
            "def extra(intent, settings):\n    return 2\n",
        )
        errors = []
        pairs = load_patterns(tmp_path / "patterns", errors)
        assert len(pairs) == 1
        messages = sorted(str(e) for e in errors)
        assert len(messages) == 2
        assert "function `extra`" in messages[0]
        assert "pattern `orphan`" in messages[1]

    def test_missing_patterns_mapping(self, tmp_path, write_module):
        write_module("patterns/none.py", "def read(intent, settings):\n    return 1\n")
        errors = []
        assert load_patterns(tmp_path / "patterns", errors) == []
        assert len(errors) == 1

    def test_imported_functions_ignored(self, tmp_path, write_module):
        write_module(
            "patterns/imp.py",
            'from os.path import join\npatterns = {"read": {"ns": "io"}}\ndef read(intent, settings):\n    return 1\n',
        )
        errors = []
        pairs = load_patterns(tmp_path / "patterns", errors)
        assert errors == []
        assert len(pairs) == 1
