"""pyclif - declarative command line applications driven by intents.

Commands are generator functions yielding *intents* (small mappings such as
`{"ns": "io", "op": "read", "path": "x"}`); a registry of patterns decides
which handler performs each of them. Command trees and patterns are plain
Python objects or directories of modules.
"""

from .app import Clif
from .commands.models import CommandDeclaration, CommandGroup, FlagDeclaration, Invocation
from .engine import DispatchEngine, Outcome, RunState
from .models import CompositionError, Fail, StructuralError
from .registry import PatternRegistry
from .version import VERSION

__all__ = [
    "VERSION",
    "Clif",
    "CommandDeclaration",
    "CommandGroup",
    "CompositionError",
    "DispatchEngine",
    "Fail",
    "FlagDeclaration",
    "Invocation",
    "Outcome",
    "PatternRegistry",
    "RunState",
    "StructuralError",
]
