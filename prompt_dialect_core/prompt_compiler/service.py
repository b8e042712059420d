"""Compiler service: text and chat templates on top of the dialect registry.

The service is the single entry point used by prompt management and prompt
execution. It normalizes payloads, resolves ``auto`` to a concrete dialect
and applies the chat placeholder policy; the dialect compilers only ever see
plain strings.

Example:
    >>> from prompt_dialect_core.prompt_compiler import default_service
    >>> service = default_service()
    >>> service.compile_with_dialect({"content": "Hi {{ user.name | upper }}"}, "text", {"user": {"name": "ada"}})
    'Hi ADA'
"""

from collections.abc import Iterable, Mapping
from functools import lru_cache
from typing import Any

from prompt_dialect_core.exceptions import NestingTooDeepError, VariableMissingError
from prompt_dialect_core.logging import get_pipeline_logger
from prompt_dialect_core.settings import settings

from ._normalize import check_structure, expand_placeholder, parse_template, representative_content
from .dialects import DialectCompiler, DialectRegistry, format_value
from .models import ChatMessage, ChatTemplate, TextTemplate, ValidationResult
from .types import MAX_NESTING_DEPTH, ChatRole, Dialect, MessageType, PromptType

logger = get_pipeline_logger(__name__)

CompiledPrompt = str | list[ChatMessage]
"""``str`` for text templates, ``list[ChatMessage]`` for chat templates."""


def diff_variables(old: Iterable[str], new: Iterable[str]) -> tuple[list[str], list[str]]:
    """Compare the variables of two template versions.

    Returns:
        ``(added, removed)``, both sorted.
    """
    old_names, new_names = set(old), set(new)
    return sorted(new_names - old_names), sorted(old_names - new_names)


class CompilerService:
    """Stateless template compilation over text and chat prompts.

    Args:
        registry: Dialect registry to use. A default registry with the three
            built-in dialects is created when omitted.
        enforce_nesting_on_compile: Reject templates nested deeper than
            MAX_NESTING_DEPTH in ``compile_with_dialect`` as well as in
            validation. Defaults to ``settings.enforce_nesting_on_compile``.
    """

    def __init__(
        self,
        registry: DialectRegistry | None = None,
        *,
        enforce_nesting_on_compile: bool | None = None,
    ) -> None:
        self._registry = registry or DialectRegistry()
        if enforce_nesting_on_compile is None:
            enforce_nesting_on_compile = settings.enforce_nesting_on_compile
        self._enforce_nesting_on_compile = enforce_nesting_on_compile

    @property
    def registry(self) -> DialectRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Simple-grammar operations
    # ------------------------------------------------------------------

    def extract_variables(self, template: Any, prompt_type: PromptType | str) -> list[str]:
        """Variables under the fixed ``{{name}}`` grammar. Chat includes placeholder names."""
        return self._extract(parse_template(template, prompt_type), self._registry.get(Dialect.SIMPLE))

    def compile(self, template: Any, prompt_type: PromptType | str, variables: Mapping[str, Any]) -> CompiledPrompt:
        """Compile with the fixed ``{{name}}`` grammar, requiring every variable.

        A placeholder becomes a single ``user`` message holding its value, or
        nothing when the value is empty.

        Raises:
            VariableMissingError: Lists every required name absent from variables.
        """
        parsed = parse_template(template, prompt_type)
        if isinstance(parsed, TextTemplate):
            return self.compile_text(parsed.content, variables)

        simple = self._registry.get(Dialect.SIMPLE)
        self.validate_variables(self._extract(parsed, simple), variables)

        compiled: list[ChatMessage] = []
        for message in parsed.messages:
            if message.is_placeholder:
                value = format_value(variables.get(message.name))
                if value:
                    compiled.append(ChatMessage(type=MessageType.MESSAGE, role=ChatRole.USER, content=value))
                continue
            compiled.append(message.model_copy(update={"content": simple.compile(message.content, variables)}))
        return compiled

    def compile_text(self, content: str, variables: Mapping[str, Any]) -> str:
        """Compile bare text with the ``{{name}}`` grammar, requiring every variable."""
        simple = self._registry.get(Dialect.SIMPLE)
        self.validate_variables(simple.extract_variables(content), variables)
        return simple.compile(content, variables)

    def validate_template(self, template: Any, prompt_type: PromptType | str) -> None:
        """Structural validation: non-empty content, and for chat the message rules.

        Raises:
            InvalidTemplateFormatError: The payload cannot be decoded.
            InvalidTemplateError: A structural rule is violated.
        """
        check_structure(parse_template(template, prompt_type))

    @staticmethod
    def validate_variables(required: Iterable[str], provided: Mapping[str, Any]) -> None:
        """Raise VariableMissingError naming every required variable not in provided."""
        missing = [name for name in required if name not in provided]
        if missing:
            raise VariableMissingError(missing)

    # ------------------------------------------------------------------
    # Dialect-aware operations
    # ------------------------------------------------------------------

    def detect_dialect(self, template: Any, prompt_type: PromptType | str) -> Dialect:
        return self._registry.detect(representative_content(parse_template(template, prompt_type)))

    def validate_syntax(
        self,
        template: Any,
        prompt_type: PromptType | str,
        dialect: Dialect | str | None = None,
    ) -> ValidationResult:
        """Syntax diagnostics for template under dialect (detected when auto).

        Chat templates are validated as one document, message contents joined
        by newlines, so line numbers count across messages.
        """
        parsed = parse_template(template, prompt_type)
        content = representative_content(parsed)
        return self._resolve(content, dialect).validate(content)

    def extract_variables_with_dialect(
        self,
        template: Any,
        prompt_type: PromptType | str,
        dialect: Dialect | str | None = None,
    ) -> list[str]:
        parsed = parse_template(template, prompt_type)
        return self._extract(parsed, self._resolve(representative_content(parsed), dialect))

    def compile_with_dialect(
        self,
        template: Any,
        prompt_type: PromptType | str,
        variables: Mapping[str, Any],
        dialect: Dialect | str | None = None,
    ) -> CompiledPrompt:
        """Render template with the given (or detected) dialect.

        Chat messages are compiled one by one and keep their type, role and
        name. Placeholders are replaced by the messages their bound value
        expands to; unbound placeholders disappear.

        Raises:
            InvalidTemplateFormatError, InvalidTemplateError: Malformed payload,
                raised before any dialect is consulted.
            UnsupportedDialectError: The dialect is not registered.
            TemplateTooLargeError: A content exceeds MAX_TEMPLATE_SIZE bytes.
            NestingTooDeepError: Only with enforce_nesting_on_compile.
            DialectCompilationError: The dialect engine failed.
        """
        parsed = parse_template(template, prompt_type)
        content = representative_content(parsed)
        compiler = self._resolve(content, dialect)

        if self._enforce_nesting_on_compile:
            depth = compiler.nesting_depth(content)
            if depth > MAX_NESTING_DEPTH:
                raise NestingTooDeepError(depth, MAX_NESTING_DEPTH)

        if isinstance(parsed, TextTemplate):
            return compiler.compile(parsed.content, variables)

        compiled: list[ChatMessage] = []
        for message in parsed.messages:
            if message.is_placeholder:
                if message.name in variables:
                    compiled.extend(expand_placeholder(variables[message.name]))
                continue
            compiled.append(message.model_copy(update={"content": compiler.compile(message.content, variables)}))
        return compiled

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve(self, content: str, dialect: Dialect | str | None) -> DialectCompiler:
        if dialect in (None, "", Dialect.AUTO):
            dialect = self._registry.detect(content)
            logger.debug(f"Detected template dialect: {dialect}")
        return self._registry.get(dialect)

    @staticmethod
    def _extract(template: TextTemplate | ChatTemplate, compiler: DialectCompiler) -> list[str]:
        if isinstance(template, TextTemplate):
            return compiler.extract_variables(template.content)

        names: set[str] = set()
        for message in template.messages:
            names.update(compiler.extract_variables(message.content))
            if message.is_placeholder and message.name:
                names.add(message.name)
        return sorted(names)


@lru_cache(maxsize=1)
def default_service() -> CompilerService:
    """Shared CompilerService built from the current settings."""
    return CompilerService()


__all__ = ["CompiledPrompt", "CompilerService", "default_service", "diff_variables"]
