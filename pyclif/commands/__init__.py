"""Command declarations and their tooling.

This package provides:
- models: Data structures (CommandDeclaration, CommandGroup, FlagDeclaration, Invocation)
- parsing: Positional notation, flag configuration and argv parsing
- validation: Structural checks of declarations and pattern modules
- discovery: Loading commands and patterns from directories
- tree: Composition of the command tree into a router
"""
