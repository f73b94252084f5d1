"""Indexing Infrastructure"""

from .compiler import CompilerReport, KinxCompiler, build_command
from .diagnostics_translator import DiagnosticsTranslator
from .index_builder import IndexBuilder
from .position_resolver import PositionResolver
from .protocol_decoder import decode_line, decode_report, parse_type_spec
from .source_loader import SourceLoader

__all__ = [
    "CompilerReport",
    "DiagnosticsTranslator",
    "IndexBuilder",
    "KinxCompiler",
    "PositionResolver",
    "SourceLoader",
    "build_command",
    "decode_line",
    "decode_report",
    "parse_type_spec",
]
