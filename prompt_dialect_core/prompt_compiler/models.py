"""Template shapes and syntax diagnostics.

Templates and messages are frozen Pydantic models so they can be shared
between threads and serialized unchanged. ValidationResult is the one mutable
model: dialect compilers fill it in while scanning and return it, after which
it is treated as read-only.
"""

from pydantic import BaseModel, ConfigDict, Field

from .types import Dialect, ErrorCode, MessageType, WarningCode


class TextTemplate(BaseModel):
    """Single-string prompt template."""

    model_config = ConfigDict(frozen=True)

    content: str


class ChatMessage(BaseModel):
    """One entry of a chat template.

    ``type`` is kept as a plain string so that unknown values survive parsing
    and can be reported by structural validation. An empty type means
    ``message``.
    """

    model_config = ConfigDict(frozen=True)

    type: str = ""
    role: str = ""
    content: str = ""
    name: str = ""

    @property
    def is_placeholder(self) -> bool:
        return self.type == MessageType.PLACEHOLDER

    @property
    def is_message(self) -> bool:
        return self.type in ("", MessageType.MESSAGE)


class ChatTemplate(BaseModel):
    """Ordered list of chat messages and placeholders."""

    model_config = ConfigDict(frozen=True)

    messages: tuple[ChatMessage, ...] = ()


class SyntaxErrorInfo(BaseModel):
    """Localized syntax error. Line and column are 1-based; 0,0 is document level."""

    model_config = ConfigDict(frozen=True)

    line: int
    column: int
    message: str
    code: ErrorCode


class SyntaxWarningInfo(BaseModel):
    """Localized syntax warning. Same coordinate rules as SyntaxErrorInfo."""

    model_config = ConfigDict(frozen=True)

    line: int
    column: int
    message: str
    code: WarningCode


class ValidationResult(BaseModel):
    """Outcome of validating a template under one dialect.

    ``valid`` flips to False on the first appended error and is never reset.
    Errors and warnings keep the order in which they were found.
    """

    valid: bool = True
    dialect: Dialect
    errors: list[SyntaxErrorInfo] = Field(default_factory=list)
    warnings: list[SyntaxWarningInfo] = Field(default_factory=list)

    def add_error(self, line: int, column: int, message: str, code: ErrorCode) -> None:
        """Append an error and mark the result invalid."""
        self.errors.append(SyntaxErrorInfo(line=line, column=column, message=message, code=code))
        self.valid = False

    def add_warning(self, line: int, column: int, message: str, code: WarningCode) -> None:
        """Append a warning. Warnings never affect ``valid``."""
        self.warnings.append(SyntaxWarningInfo(line=line, column=column, message=message, code=code))

    def has_error(self, code: ErrorCode) -> bool:
        return any(error.code == code for error in self.errors)


__all__ = [
    "ChatMessage",
    "ChatTemplate",
    "SyntaxErrorInfo",
    "SyntaxWarningInfo",
    "TextTemplate",
    "ValidationResult",
]
