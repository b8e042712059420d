"""Transport-agnostic operations: detect-dialect, validate-template, preview-template.

Each handler takes a frozen request model and returns a frozen response
model, so an HTTP layer only has to (de)serialize. Errors propagate as
PromptDialectError subclasses; the transport maps them with the
``is_*_error`` predicates.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from prompt_dialect_core.exceptions import PromptDialectError
from prompt_dialect_core.logging import get_pipeline_logger
from prompt_dialect_core.settings import settings

from .models import ChatTemplate, SyntaxErrorInfo, SyntaxWarningInfo, TextTemplate
from .service import CompilerService, default_service
from .types import Dialect, PromptType

logger = get_pipeline_logger(__name__)


class DetectDialectRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    template: Any
    type: PromptType


class DetectDialectResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    dialect: Dialect


class ValidateTemplateRequest(BaseModel):
    """Syntax validation request. ``dialect`` None means the configured default."""

    model_config = ConfigDict(frozen=True)

    template: Any
    type: PromptType
    dialect: Dialect | None = None


class ValidateTemplateResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    dialect: Dialect
    variables: list[str] = Field(default_factory=list)
    errors: list[SyntaxErrorInfo] = Field(default_factory=list)
    warnings: list[SyntaxWarningInfo] = Field(default_factory=list)


class PreviewTemplateRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    template: Any
    type: PromptType
    variables: dict[str, Any] = Field(default_factory=dict)
    dialect: Dialect | None = None


class PreviewTemplateResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    compiled: TextTemplate | ChatTemplate
    dialect: Dialect


def _requested_dialect(dialect: Dialect | None) -> Dialect:
    return dialect if dialect is not None else Dialect(settings.default_dialect)


def _concrete_dialect(service: CompilerService, request: ValidateTemplateRequest | PreviewTemplateRequest) -> Dialect:
    dialect = _requested_dialect(request.dialect)
    if dialect is Dialect.AUTO:
        return service.detect_dialect(request.template, request.type)
    return dialect


def detect_dialect(request: DetectDialectRequest, service: CompilerService | None = None) -> DetectDialectResponse:
    service = service or default_service()
    return DetectDialectResponse(dialect=service.detect_dialect(request.template, request.type))


def validate_template(request: ValidateTemplateRequest, service: CompilerService | None = None) -> ValidateTemplateResponse:
    """Validate syntax and list variables.

    Variable extraction runs after syntax validation and falls back to an
    empty list when it fails, so a broken template still gets diagnostics.
    """
    service = service or default_service()
    dialect = _concrete_dialect(service, request)
    result = service.validate_syntax(request.template, request.type, dialect)

    try:
        variables = service.extract_variables_with_dialect(request.template, request.type, dialect)
    except PromptDialectError as e:
        logger.debug(f"Variable extraction failed for {dialect} template: {e}")
        variables = []

    return ValidateTemplateResponse(
        valid=result.valid,
        dialect=result.dialect,
        variables=variables,
        errors=result.errors,
        warnings=result.warnings,
    )


def preview_template(request: PreviewTemplateRequest, service: CompilerService | None = None) -> PreviewTemplateResponse:
    """Render a template with sample variables."""
    service = service or default_service()
    dialect = _concrete_dialect(service, request)
    compiled = service.compile_with_dialect(request.template, request.type, request.variables, dialect)

    if isinstance(compiled, str):
        return PreviewTemplateResponse(compiled=TextTemplate(content=compiled), dialect=dialect)
    return PreviewTemplateResponse(compiled=ChatTemplate(messages=tuple(compiled)), dialect=dialect)


__all__ = [
    "DetectDialectRequest",
    "DetectDialectResponse",
    "PreviewTemplateRequest",
    "PreviewTemplateResponse",
    "ValidateTemplateRequest",
    "ValidateTemplateResponse",
    "detect_dialect",
    "preview_template",
    "validate_template",
]
