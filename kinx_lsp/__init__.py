"""
Kinx Language Server

Compiler-driven indexing for Kinx source files:
- protocol decoding of the `kinx -ic --output-location` report
- per-document symbol index (definitions, references, calls, inheritance)
- diagnostics, definition lookup, hover, completion, semantic highlighting
"""

__version__ = "0.1.0"
