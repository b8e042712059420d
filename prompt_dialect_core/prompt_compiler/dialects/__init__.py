"""Template dialect compilers and the registry that selects among them."""

from ._base import DialectCompiler, check_template_size
from .jinja import JinjaCompiler
from .mustache import MustacheCompiler
from .registry import DialectRegistry, detect_dialect
from .simple import SimpleCompiler, format_value

__all__ = [
    "DialectCompiler",
    "DialectRegistry",
    "JinjaCompiler",
    "MustacheCompiler",
    "SimpleCompiler",
    "check_template_size",
    "detect_dialect",
    "format_value",
]
