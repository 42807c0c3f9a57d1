"""Tests for the built-in intent handlers."""

import logging
import os
from unittest.mock import patch

import pytest

from pyclif.app import Clif
from pyclif.builtins import (
    BUILTIN_PATTERNS,
    RECOVERY_PATTERNS,
    exit_process,
    log_message,
    print_text,
    read_file,
    report_failure,
    write_file,
)
from pyclif.commands.models import CommandDeclaration
from pyclif.models import Fail


@pytest.mark.asyncio
async def test_read_and_write(tmp_path):
    path = tmp_path / "notes.txt"
    assert await write_file({"ns": "io", "op": "write", "path": str(path), "data": "one\n"}, None) == 4
    assert await write_file({"ns": "io", "op": "write", "path": str(path), "data": "two\n", "append": True}, None) == 4
    assert await read_file({"ns": "io", "op": "read", "path": str(path)}, None) == "one\ntwo\n"


@pytest.mark.asyncio
async def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        await read_file({"ns": "io", "op": "read", "path": str(tmp_path / "missing")}, None)


def test_print_text(capsys):
    print_text({"ns": "print", "text": "hello"}, None)
    print_text({"ns": "print", "text": "oops", "stderr": True}, None)
    captured = capsys.readouterr()
    assert captured.out == "hello\n"
    assert captured.err == "oops\n"


def test_log_message(mocker):
    logger = mocker.Mock()
    mocker.patch("pyclif.builtins.get_logger", return_value=logger)
    log_message({"ns": "log", "message": "careful", "level": "warning"}, None)
    logger.log.assert_called_once_with(logging.WARNING, "%s", "careful")


def test_log_message_unknown_level(mocker):
    logger = mocker.Mock()
    mocker.patch("pyclif.builtins.get_logger", return_value=logger)
    log_message({"ns": "log", "message": "hi", "level": "chatty"}, None)
    logger.log.assert_called_once_with(logging.INFO, "%s", "hi")


def test_exit_process():
    with pytest.raises(SystemExit) as info:
        exit_process({"ns": "exit", "code": 3}, None)
    assert info.value.code == 3
    with pytest.raises(SystemExit) as info:
        exit_process({"ns": "exit"}, None)
    assert info.value.code == 0


def test_report_failure(capsys):
    with patch.dict(os.environ, {"NO_COLOR": "1"}):
        failure = report_failure(KeyError("missing"), None)
    assert isinstance(failure, Fail)
    assert capsys.readouterr().err == "Error: [failure] 'missing'\n"


def test_report_failure_extras(capsys):
    with patch.dict(os.environ, {"NO_COLOR": "1"}):
        report_failure(Fail({"ns": "io", "path": "a.txt"}, "cannot read"), None)
    assert capsys.readouterr().err == "Error: [io] cannot read {'path': 'a.txt'}\n"


@pytest.mark.asyncio
async def test_read_print_exit(tmp_path, capsys):
    source = tmp_path / "message.txt"
    source.write_text("from file")

    def show(inv):
        text = yield {"ns": "io", "op": "read", "path": inv.inputs["path"]}
        yield {"ns": "print", "text": text}
        yield {"ns": "exit", "code": 5}
        yield {"ns": "print", "text": "never"}

    app = Clif({"show": CommandDeclaration("Show a file", show, positionals=["<path>"])}, patterns=BUILTIN_PATTERNS)
    with pytest.raises(SystemExit) as info:
        await app.run(["show", str(source)])
    assert info.value.code == 5
    assert capsys.readouterr().out == "from file\n"


@pytest.mark.asyncio
async def test_recovery_patterns(tmp_path, capsys):
    def show(_inv):
        yield {"ns": "io", "op": "read", "path": str(tmp_path / "missing")}

    app = Clif(
        {"show": CommandDeclaration("Show a file", show)},
        patterns=[*BUILTIN_PATTERNS, *RECOVERY_PATTERNS],
    )
    with patch.dict(os.environ, {"NO_COLOR": "1"}):
        outcome = await app.run(["show"])
    assert isinstance(outcome.value, Fail)
    assert isinstance(outcome.recovered, FileNotFoundError)
    assert "Error: [failure]" in capsys.readouterr().err
