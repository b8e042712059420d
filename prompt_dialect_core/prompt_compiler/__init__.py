"""Multi-dialect prompt template compiler.

Three grammars are supported: plain ``{{name}}`` substitution (``simple``),
Mustache (``mustache``) and sandboxed Jinja2 (``jinja2``). ``auto`` picks one
from the template content. Validation reports line/column diagnostics and
never renders the template.
"""

from ._normalize import expand_placeholder
from .api import (
    DetectDialectRequest,
    DetectDialectResponse,
    PreviewTemplateRequest,
    PreviewTemplateResponse,
    ValidateTemplateRequest,
    ValidateTemplateResponse,
)
from .dialects import DialectCompiler, DialectRegistry, JinjaCompiler, MustacheCompiler, SimpleCompiler, detect_dialect
from .models import ChatMessage, ChatTemplate, SyntaxErrorInfo, SyntaxWarningInfo, TextTemplate, ValidationResult
from .service import CompiledPrompt, CompilerService, default_service, diff_variables
from .types import (
    MAX_NESTING_DEPTH,
    MAX_TEMPLATE_SIZE,
    MAX_VARIABLES,
    ChatRole,
    Dialect,
    ErrorCode,
    MessageType,
    PromptType,
    WarningCode,
)

__all__ = [
    "MAX_NESTING_DEPTH",
    "MAX_TEMPLATE_SIZE",
    "MAX_VARIABLES",
    "ChatMessage",
    "ChatRole",
    "ChatTemplate",
    "CompiledPrompt",
    "CompilerService",
    "DetectDialectRequest",
    "DetectDialectResponse",
    "Dialect",
    "DialectCompiler",
    "DialectRegistry",
    "ErrorCode",
    "JinjaCompiler",
    "MessageType",
    "MustacheCompiler",
    "PreviewTemplateRequest",
    "PreviewTemplateResponse",
    "PromptType",
    "SimpleCompiler",
    "SyntaxErrorInfo",
    "SyntaxWarningInfo",
    "TextTemplate",
    "ValidateTemplateRequest",
    "ValidateTemplateResponse",
    "ValidationResult",
    "WarningCode",
    "default_service",
    "detect_dialect",
    "diff_variables",
    "expand_placeholder",
]
