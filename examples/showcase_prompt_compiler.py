#!/usr/bin/env python3
"""Showcase of prompt_dialect_core.prompt_compiler features.

Demonstrates the capabilities of the template compiler:
  - detect_dialect(): Pick simple / mustache / jinja2 from template syntax
  - compile_with_dialect(): Render text and chat templates
  - Chat placeholders: Splice conversation history into a chat template
  - validate_syntax(): Line/column diagnostics without executing templates
  - extract_variables_with_dialect(): Variables a template needs
  - diff_variables(): Compare two template versions
  - Mustache partials registered on the DialectRegistry
  - The legacy compile() path with strict variable checking
  - Error kinds and predicates

No network access or LLM connection required.

Usage:
  python examples/showcase_prompt_compiler.py
"""

from prompt_dialect_core import (
    CompilerService,
    DialectRegistry,
    PromptDialectError,
    VariableMissingError,
    diff_variables,
    is_compilation_error,
    is_not_found_error,
    is_validation_error,
    setup_logging,
)

# =============================================================================
# 1. Templates in each dialect
# =============================================================================

SIMPLE_TEXT = "Summarize {{topic}} for {{audience}} in at most {{limit}} words."

MUSTACHE_TEXT = """\
Project: {{project.name}}
{{#risks}}
- {{title}} ({{severity}})
{{/risks}}
{{^risks}}
No risks recorded.
{{/risks}}
{{> footer}}"""

JINJA_TEXT = """\
{% if reviewer %}Reviewer: {{ reviewer | title }}{% endif %}
{% for item in findings %}
{{ loop.index }}. {{ item.summary | trim }}{% if item.blocking %} [BLOCKING]{% endif %}
{% endfor %}
Total: {{ findings | length }}"""

CHAT_TEMPLATE = {
    "messages": [
        {"role": "system", "content": "You are a {{ persona }}. Answer in {{ language | default('English') }}."},
        {"type": "placeholder", "name": "history"},
        {"role": "user", "content": "{{ question }}"},
    ]
}

# =============================================================================
# 2. Templates with problems, for validation
# =============================================================================

BROKEN_TEMPLATES = {
    "simple": "Hello {{name}, your order {{ order id }} {{#legacy}}",
    "mustache": "{{#items}}\n{{title}}\n{{/item}}\n{{#empty}}{{/empty}}",
    "jinja2": "{% for x in xs %}\n{{ x | shout }}\n{% macro m() %}{% endmacro %}\n{{ x.__class__ }}",
}


def _section(number: int, title: str) -> None:
    print("\n" + "=" * 80)
    print(f"\n--- {number}. {title} ---\n")


def main() -> None:
    """Run all showcase sections."""
    setup_logging(level="WARNING")

    registry = DialectRegistry(mustache_partials={"footer": "-- generated for {{project.owner}} --"})
    service = CompilerService(registry)

    # --- Feature: dialect detection ---
    _section(1, "detect_dialect()")
    for label, content in (("simple", SIMPLE_TEXT), ("mustache", MUSTACHE_TEXT), ("jinja2", JINJA_TEXT)):
        print(f"  {label:<9} -> {service.detect_dialect(content, 'text')}")
    print(f"  chat      -> {service.detect_dialect(CHAT_TEMPLATE, 'chat')}")

    # --- Feature: variable extraction ---
    _section(2, "extract_variables_with_dialect()")
    for label, content in (("simple", SIMPLE_TEXT), ("mustache", MUSTACHE_TEXT), ("jinja2", JINJA_TEXT)):
        print(f"  {label:<9} {service.extract_variables_with_dialect(content, 'text')}")
    print(f"  chat      {service.extract_variables_with_dialect(CHAT_TEMPLATE, 'chat')}")

    # --- Feature: compiling each dialect ---
    _section(3, "compile_with_dialect() - text templates")
    print(service.compile_with_dialect(SIMPLE_TEXT, "text", {"topic": "the audit", "audience": "executives", "limit": 120}))
    print()
    print(
        service.compile_with_dialect(
            MUSTACHE_TEXT,
            "text",
            {
                "project": {"name": "Bridge", "owner": "risk team"},
                "risks": [{"title": "Oracle lag", "severity": "high"}, {"title": "Thin liquidity", "severity": "medium"}],
            },
        )
    )
    print()
    print(
        service.compile_with_dialect(
            JINJA_TEXT,
            "text",
            {
                "reviewer": "ada lovelace",
                "findings": [{"summary": "  Missing tests ", "blocking": True}, {"summary": "Typos", "blocking": False}],
            },
        )
    )

    # --- Feature: chat placeholders ---
    _section(4, "Chat templates with placeholders")
    history = [
        {"role": "user", "content": "What is a reentrancy bug?"},
        {"role": "assistant", "content": "A call that re-enters a contract before state is updated."},
    ]
    messages = service.compile_with_dialect(
        CHAT_TEMPLATE,
        "chat",
        {"persona": "security reviewer", "history": history, "question": "How do I prevent it?"},
    )
    for message in messages:
        print(f"  [{message.role}] {message.content}")

    print("\n  Without history the placeholder disappears:")
    for message in service.compile_with_dialect(CHAT_TEMPLATE, "chat", {"persona": "tutor", "question": "Hi"}):
        print(f"  [{message.role}] {message.content}")

    # --- Feature: syntax validation ---
    _section(5, "validate_syntax()")
    for dialect, content in BROKEN_TEMPLATES.items():
        result = service.validate_syntax(content, "text", dialect)
        print(f"  {dialect}: valid={result.valid}")
        for error in result.errors:
            print(f"    error   {error.line}:{error.column} {error.code}: {error.message}")
        for warning in result.warnings:
            print(f"    warning {warning.line}:{warning.column} {warning.code}: {warning.message}")

    # --- Feature: version diff ---
    _section(6, "diff_variables()")
    old = service.extract_variables_with_dialect("Hi {{name}}, you owe {{amount}}", "text")
    new = service.extract_variables_with_dialect("Hi {{ name }}, pay {{ amount | round(2) }} by {{ due }}", "text")
    added, removed = diff_variables(old, new)
    print(f"  added={added} removed={removed}")

    # --- Feature: legacy compile with strict variables ---
    _section(7, "compile() with strict variable checking")
    try:
        service.compile({"content": SIMPLE_TEXT}, "text", {"topic": "x"})
    except VariableMissingError as e:
        print(f"  {e} (missing={list(e.missing)})")

    # --- Feature: error predicates ---
    _section(8, "Error kinds")
    attempts = {
        "unsupported dialect": lambda: service.compile_with_dialect("x", "text", {}, "handlebars"),
        "empty chat": lambda: service.validate_template({"messages": []}, "chat"),
        "engine failure": lambda: service.compile_with_dialect("{% if %}", "text", {}, "jinja2"),
    }
    for label, attempt in attempts.items():
        try:
            attempt()
        except PromptDialectError as e:
            flags = f"validation={is_validation_error(e)} not_found={is_not_found_error(e)} compilation={is_compilation_error(e)}"
            print(f"  [{label}] {e.kind}: {e}\n    {flags}")

    print("\n" + "=" * 80)
    print("\nAll features demonstrated successfully.")


if __name__ == "__main__":
    main()
