" generic fixtures "
import pytest
from pytest_asyncio import fixture

from pyclif.engine import DispatchEngine, normalize_failure
from pyclif.registry import PatternRegistry


def pytest_configure():
    "Runs once before all"
    from pyclif.logging_setup import init_logger

    init_logger("/dev/null", force_debug=True)


@pytest.fixture
def registry():
    "An empty registry (plus the default failure normalizer)"
    reg = PatternRegistry()
    reg.register(Exception, normalize_failure, default=True)
    return reg


@pytest.fixture
def settings():
    "Mutable settings shared by the handlers"
    return {"name": "test"}


@fixture
async def engine(registry, settings):
    "A dispatch engine over the registry fixture"
    return DispatchEngine(registry, settings)


@pytest.fixture
def calls():
    "Records the intents seen by handlers, in order"
    return []


@pytest.fixture
def recorder(calls):
    "Build a handler appending its intent to `calls` and returning `result`"

    def make(result=None):
        def handler(intent, _settings):
            calls.append(intent)
            return result

        return handler

    return make


@pytest.fixture
def write_module(tmp_path):
    "Write a Python module below tmp_path, return its path"

    def write(relative, source):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
        return path

    return write


@pytest.fixture
def test_logger():
    "A logger for the objects requiring one"
    from pyclif.logging_setup import get_logger

    return get_logger("test")
