"""CLI tool for dialect detection, syntax validation, variable listing and previews."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from prompt_dialect_core.exceptions import PromptDialectError
from prompt_dialect_core.settings import settings

from .api import (
    DetectDialectRequest,
    PreviewTemplateRequest,
    ValidateTemplateRequest,
    detect_dialect,
    preview_template,
    validate_template,
)
from .service import default_service
from .types import Dialect, PromptType

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


class UsageError(Exception):
    """Bad command-line input (unreadable file, malformed --var)."""


def _read_template(path: str, prompt_type: PromptType) -> str | bytes:
    """Read a template file ('-' for stdin).

    Chat templates and ``.json`` files are JSON documents; any other text
    template file is taken as the content itself.
    """
    try:
        data = sys.stdin.buffer.read() if path == "-" else Path(path).read_bytes()
    except OSError as e:
        raise UsageError(f"cannot read template {path}: {e.strerror or e}") from e

    if prompt_type is PromptType.CHAT or path.endswith(".json"):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise UsageError(f"template {path} is not valid UTF-8") from e


def _parse_variables(pairs: list[str], vars_json: Path | None) -> dict[str, Any]:
    """Merge ``--vars-json`` (a JSON object) with ``--var key=value`` pairs; pairs win."""
    variables: dict[str, Any] = {}
    if vars_json is not None:
        try:
            loaded = json.loads(vars_json.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise UsageError(f"cannot load variables from {vars_json}: {e}") from e
        if not isinstance(loaded, dict):
            raise UsageError(f"{vars_json} must contain a JSON object")
        variables.update(loaded)

    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise UsageError(f"--var expects key=value, got {pair!r}")
        variables[key] = value
    return variables


def _emit(model: BaseModel | dict[str, Any]) -> None:
    if isinstance(model, BaseModel):
        print(model.model_dump_json(indent=2))
    else:
        print(json.dumps(model, indent=2, ensure_ascii=False))


def _fail(error: Exception) -> int:
    body: dict[str, Any] = {"error": str(error)}
    if isinstance(error, PromptDialectError):
        body["kind"] = error.kind.value
    _emit(body)
    return EXIT_FAILED


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_detect(args: argparse.Namespace) -> int:
    """Print the detected dialect."""
    template = _read_template(args.file, args.type)
    _emit(detect_dialect(DetectDialectRequest(template=template, type=args.type)))
    return EXIT_OK


def _cmd_validate(args: argparse.Namespace) -> int:
    """Print syntax diagnostics; exit 1 if any error was found."""
    template = _read_template(args.file, args.type)
    response = validate_template(ValidateTemplateRequest(template=template, type=args.type, dialect=args.dialect))
    _emit(response)
    return EXIT_OK if response.valid else EXIT_FAILED


def _cmd_preview(args: argparse.Namespace) -> int:
    """Render the template with the given variables."""
    template = _read_template(args.file, args.type)
    variables = _parse_variables(args.var, args.vars_json)
    request = PreviewTemplateRequest(template=template, type=args.type, variables=variables, dialect=args.dialect)
    _emit(preview_template(request))
    return EXIT_OK


def _cmd_variables(args: argparse.Namespace) -> int:
    """List the variables a template needs."""
    template = _read_template(args.file, args.type)
    service = default_service()
    dialect = args.dialect or Dialect(settings.default_dialect)
    variables = service.extract_variables_with_dialect(template, args.type, dialect)
    _emit({"variables": variables})
    return EXIT_OK


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _add_common_arguments(parser: argparse.ArgumentParser, *, dialect: bool = True) -> None:
    parser.add_argument("file", help="Template file, or '-' for stdin")
    parser.add_argument("--type", type=PromptType, choices=list(PromptType), default=PromptType.TEXT, help="Prompt type")
    if dialect:
        parser.add_argument("--dialect", type=Dialect, choices=list(Dialect), default=None, help="Template dialect (default: settings)")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for template compiler operations."""
    parser = argparse.ArgumentParser(prog="prompt-dialect", description="Prompt template dialect CLI")
    subparsers = parser.add_subparsers(dest="command")

    # detect
    detect_parser = subparsers.add_parser("detect", help="Detect the dialect of a template")
    _add_common_arguments(detect_parser, dialect=False)

    # validate
    validate_parser = subparsers.add_parser("validate", help="Validate template syntax")
    _add_common_arguments(validate_parser)

    # preview
    preview_parser = subparsers.add_parser("preview", help="Render a template with variables")
    _add_common_arguments(preview_parser)
    preview_parser.add_argument("--var", action="append", default=[], metavar="KEY=VALUE", help="Variable binding (repeatable)")
    preview_parser.add_argument("--vars-json", type=Path, default=None, help="JSON file with a variables object")

    # variables
    variables_parser = subparsers.add_parser("variables", help="List template variables")
    _add_common_arguments(variables_parser)

    args = parser.parse_args(argv)

    handlers = {"detect": _cmd_detect, "validate": _cmd_validate, "preview": _cmd_preview, "variables": _cmd_variables}
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return EXIT_USAGE

    try:
        return handler(args)
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except (PromptDialectError, ValidationError) as e:
        return _fail(e)


__all__ = ["main"]


if __name__ == "__main__":
    sys.exit(main())
