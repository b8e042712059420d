"""Tests for the Mustache dialect."""

from datetime import date

import pytest

from prompt_dialect_core.exceptions import DialectCompilationError, TemplateTooLargeError
from prompt_dialect_core.prompt_compiler.dialects.mustache import MustacheCompiler, private_paths, rewrite_dotted_sections
from prompt_dialect_core.prompt_compiler.models import ChatMessage
from prompt_dialect_core.prompt_compiler.types import MAX_NESTING_DEPTH, MAX_TEMPLATE_SIZE, Dialect, ErrorCode, WarningCode


@pytest.fixture
def compiler() -> MustacheCompiler:
    return MustacheCompiler()


def _nested(depth: int) -> str:
    opens = "".join(f"{{{{#s{i}}}}}\n" for i in range(depth))
    closes = "".join(f"{{{{/s{i}}}}}\n" for i in reversed(range(depth)))
    return opens + "x\n" + closes


def test_identity(compiler: MustacheCompiler) -> None:
    assert compiler.dialect is Dialect.MUSTACHE


class TestExtractVariables:
    def test_all_tag_kinds(self, compiler: MustacheCompiler) -> None:
        content = "{{name}} {{{raw}}} {{&amp}} {{#sec}}{{.}}{{/sec}} {{^inv}}x{{/inv}} {{>part}} {{! comment }} {{user.name}}"
        assert compiler.extract_variables(content) == ["amp", "inv", "name", "raw", "sec", "user"]

    def test_deduplicated(self, compiler: MustacheCompiler) -> None:
        assert compiler.extract_variables("{{#a}}{{a}}{{/a}} {{ a }}") == ["a"]

    def test_helper_block_arguments(self, compiler: MustacheCompiler) -> None:
        assert compiler.extract_variables("{{#each items}}{{this}}{{/each}} {{#if user.ok}}y{{/if}}") == ["items", "user"]


class TestRewriteDottedSections:
    def test_section_becomes_helper_block(self) -> None:
        assert rewrite_dotted_sections("{{#a.b}}x{{/a.b}}") == "{{#_dotted_section a.b}}x{{/_dotted_section}}"

    def test_inverted_becomes_unless(self) -> None:
        assert rewrite_dotted_sections("{{^a.b}}x{{/a.b}}") == "{{#unless a.b}}x{{/unless}}"

    def test_ampersand_becomes_triple(self) -> None:
        assert rewrite_dotted_sections("{{&html}}") == "{{{html}}}"

    def test_plain_templates_unchanged(self) -> None:
        content = "{{#items}}{{name}}{{/items}} {{^none}}-{{/none}}"
        assert rewrite_dotted_sections(content) == content


class TestCompile:
    def test_variables(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("Hello {{name}}!", {"name": "World"}) == "Hello World!"

    def test_section_iterates_lists(self, compiler: MustacheCompiler) -> None:
        output = compiler.compile("{{#items}}[{{name}}]{{/items}}", {"items": [{"name": "a"}, {"name": "b"}]})
        assert output == "[a][b]"

    def test_section_skipped_when_falsy(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("a{{#show}}b{{/show}}c", {"show": False}) == "ac"

    def test_inverted_section(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("{{^items}}none{{/items}}", {"items": []}) == "none"

    def test_dotted_section(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("{{#user.active}}on{{/user.active}}", {"user": {"active": True}}) == "on"

    def test_dotted_section_iterates_lists(self, compiler: MustacheCompiler) -> None:
        variables = {"user": {"items": [{"name": "a"}, {"name": "b"}]}, "name": "OUTER"}
        assert compiler.compile("{{#user.items}}[{{name}}]{{/user.items}}", variables) == "[a][b]"

    def test_dotted_section_pushes_mapping(self, compiler: MustacheCompiler) -> None:
        variables = {"user": {"profile": {"name": "Ada"}}, "name": "OUTER"}
        assert compiler.compile("{{#user.profile}}{{name}}{{/user.profile}}", variables) == "Ada"

    def test_dotted_section_skipped_when_falsy(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("a{{#user.tags}}x{{/user.tags}}b", {"user": {"tags": []}}) == "ab"

    def test_dotted_inverted_section(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("{{^user.missing}}none{{/user.missing}}", {"user": {}}) == "none"

    def test_dotted_variable(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("{{user.name}}", {"user": {"name": "Ada"}}) == "Ada"

    def test_escaping(self, compiler: MustacheCompiler) -> None:
        escaped = compiler.compile("{{html}}", {"html": "<b>"})
        assert "<b>" not in escaped
        assert "&lt;" in escaped
        assert compiler.compile("{{{html}}}", {"html": "<b>"}) == "<b>"
        assert compiler.compile("{{&html}}", {"html": "<b>"}) == "<b>"

    def test_escaping_covers_quote_and_backtick(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("{{code}}", {"code": "`it's`"}) == "&#x60;it&#x27;s&#x60;"
        assert compiler.compile("{{{code}}}", {"code": "`it's`"}) == "`it's`"


class TestRenderContext:
    def test_models_render_as_their_fields(self, compiler: MustacheCompiler) -> None:
        message = ChatMessage(role="user", content="hi")
        assert compiler.compile("{{m.role}}: {{m.content}}", {"m": message}) == "user: hi"

    def test_values_render_as_json_data(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("{{d}}", {"d": date(2024, 1, 2)}) == "2024-01-02"

    @pytest.mark.parametrize(
        "content",
        [
            "{{{m.model_copy.__func__.__globals__.sys.modules.os.environ.HOME}}}",
            "{{m.__class__.__name__}}",
            "{{x.__class__.__name__}}",
            "{{#m.__dict__}}{{.}}{{/m.__dict__}}",
            "{{&_secret}}",
        ],
    )
    def test_private_attributes_rejected(self, compiler: MustacheCompiler, content: str) -> None:
        with pytest.raises(DialectCompilationError, match="private attribute"):
            compiler.compile(content, {"m": ChatMessage(role="user", content="hi"), "x": "s", "_secret": "k"})

    def test_private_attributes_rejected_in_partials(self) -> None:
        compiler = MustacheCompiler(partials={"leak": "{{m.__class__}}"})
        with pytest.raises(DialectCompilationError, match="private attribute"):
            compiler.compile("{{>leak}}", {"m": "s"})

    def test_private_paths(self) -> None:
        content = "{{a}} {{_b}} {{#x._y}}z{{/x._y}} {{! _c }} {{{ d.__e }}} {{snake_case}}"
        assert private_paths(content) == ["_b", "x._y", "d.__e"]

    def test_comment(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("a{{! ignored }}b", {}) == "ab"

    def test_partials(self) -> None:
        compiler = MustacheCompiler(partials={"greet": "Hi {{name}}"})
        assert compiler.compile("{{>greet}}!", {"name": "Ada"}) == "Hi Ada!"

    def test_unknown_partial_renders_empty(self, compiler: MustacheCompiler) -> None:
        assert compiler.compile("a{{>missing}}b", {}) == "ab"

    def test_partials_are_read_only(self) -> None:
        compiler = MustacheCompiler(partials={"p": "x"})
        with pytest.raises(TypeError):
            compiler.partials["q"] = "y"  # type: ignore[index]

    def test_parse_failure_is_compilation_error(self, compiler: MustacheCompiler) -> None:
        with pytest.raises(DialectCompilationError) as exc_info:
            compiler.compile("{{#a}}unclosed", {"a": True})
        assert exc_info.value.dialect == "mustache"
        assert str(exc_info.value).startswith("mustache compilation failed")

    def test_deterministic(self, compiler: MustacheCompiler) -> None:
        variables = {"items": [{"name": "a"}], "x": 1}
        content = "{{x}}{{#items}}{{name}}{{/items}}"
        assert compiler.compile(content, variables) == compiler.compile(content, variables)

    def test_too_large(self, compiler: MustacheCompiler) -> None:
        with pytest.raises(TemplateTooLargeError):
            compiler.compile("{{#a}}" * (MAX_TEMPLATE_SIZE // 6 + 1), {})


class TestValidate:
    def test_valid_template(self, compiler: MustacheCompiler) -> None:
        result = compiler.validate("Hi {{#user}}{{name}}{{/user}}\n{{^none}}-{{/none}}")
        assert result.valid
        assert result.dialect is Dialect.MUSTACHE
        assert result.warnings == []

    def test_mismatched_close_is_single_error(self, compiler: MustacheCompiler) -> None:
        result = compiler.validate("{{#a}}{{/b}}")
        assert not result.valid
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.code == ErrorCode.INVALID_SYNTAX
        assert "mismatched" in error.message
        assert "'a'" in error.message
        assert "/b" in error.message

    def test_unmatched_closing(self, compiler: MustacheCompiler) -> None:
        result = compiler.validate("text {{/a}}")
        assert [(e.line, e.column, e.code) for e in result.errors] == [(1, 6, ErrorCode.UNMATCHED_CLOSING)]

    def test_unclosed_section_reported_at_opening(self, compiler: MustacheCompiler) -> None:
        result = compiler.validate("x\n  {{#a}}\ny")
        assert [(e.line, e.column, e.code) for e in result.errors] == [(2, 3, ErrorCode.UNMATCHED_OPENING)]

    def test_unterminated_tag(self, compiler: MustacheCompiler) -> None:
        result = compiler.validate("Hello {{name")
        assert [(e.line, e.column, e.code) for e in result.errors] == [(1, 7, ErrorCode.UNMATCHED_OPENING)]

    def test_empty_section_warns(self, compiler: MustacheCompiler) -> None:
        result = compiler.validate("{{#a}}{{/a}}")
        assert result.valid
        assert [(w.line, w.column, w.code) for w in result.warnings] == [(1, 1, WarningCode.EMPTY_BLOCK)]

    def test_helper_block_closes_by_name(self, compiler: MustacheCompiler) -> None:
        assert compiler.validate("{{#each items}}{{this}}{{/each}}").valid

    def test_nesting_at_limit_is_valid(self, compiler: MustacheCompiler) -> None:
        assert compiler.validate(_nested(MAX_NESTING_DEPTH)).valid
        assert compiler.nesting_depth(_nested(MAX_NESTING_DEPTH)) == MAX_NESTING_DEPTH

    def test_sequential_sections_on_one_line(self, compiler: MustacheCompiler) -> None:
        content = "".join(f"{{{{#s{i}}}}}x{{{{/s{i}}}}}" for i in range(MAX_NESTING_DEPTH + 1))
        assert compiler.validate(content).valid
        assert compiler.nesting_depth(content) == 1

    def test_nesting_on_one_line_still_counts(self, compiler: MustacheCompiler) -> None:
        content = _nested(MAX_NESTING_DEPTH + 1).replace("\n", "")
        result = compiler.validate(content)
        assert [(e.line, e.code) for e in result.errors] == [(1, ErrorCode.NESTED_TOO_DEEP)]

    def test_private_attribute_warns(self, compiler: MustacheCompiler) -> None:
        result = compiler.validate("ok {{name}}\n{{x.__class__}}")
        assert result.valid
        assert [(w.line, w.column, w.code) for w in result.warnings] == [(2, 1, WarningCode.POTENTIAL_INJECTION)]

    def test_nesting_too_deep(self, compiler: MustacheCompiler) -> None:
        result = compiler.validate(_nested(MAX_NESTING_DEPTH + 1))
        assert [(e.line, e.code) for e in result.errors] == [(MAX_NESTING_DEPTH + 1, ErrorCode.NESTED_TOO_DEEP)]

    def test_too_large_short_circuits(self, compiler: MustacheCompiler) -> None:
        result = compiler.validate("{{/a}}" * (MAX_TEMPLATE_SIZE // 6 + 1))
        assert [(e.line, e.column, e.code) for e in result.errors] == [(0, 0, ErrorCode.TEMPLATE_TOO_LARGE)]
