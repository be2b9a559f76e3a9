"""Tests for the literal eligibility rules."""

from conftest import find_node, make_config, parse

from i18nwrap.eligibility import assess, has_ignore_marker
from i18nwrap.structures import WRAP, SkipReason


def verdict_for(code: str, literal: str, kind: str = "string", **overrides):
    module = parse(code)
    node = find_node(module, kind, literal)
    return assess(node, module, make_config(**overrides))


class TestSkipRules:
    def test_plain_korean_string_wraps(self):
        assert verdict_for('const a = "안녕하세요";', '"안녕하세요"') == WRAP

    def test_object_key_is_skipped(self):
        verdict = verdict_for('const a = { "이름": 1 };', '"이름"')
        assert verdict.reason is SkipReason.OBJECT_PROPERTY_KEY

    def test_object_value_wraps(self):
        assert verdict_for('const a = { label: "이름" };', '"이름"').wrap

    def test_object_key_wins_over_ignore_marker(self):
        code = 'const a = {\n  // i18n-ignore\n  "이름": 1,\n};'
        verdict = verdict_for(code, '"이름"')
        assert verdict.reason is SkipReason.OBJECT_PROPERTY_KEY

    def test_computed_key_is_skipped(self):
        verdict = verdict_for('const a = { ["이름"]: 1 };', '"이름"')
        assert verdict.reason is SkipReason.OBJECT_PROPERTY_KEY

    def test_import_source_is_skipped(self):
        verdict = verdict_for('import x from "./한글";', '"./한글"')
        assert verdict.reason is SkipReason.IMPORT_OR_EXPORT_SOURCE

    def test_export_source_is_skipped(self):
        verdict = verdict_for('export { x } from "./한글";', '"./한글"')
        assert verdict.reason is SkipReason.IMPORT_OR_EXPORT_SOURCE

    def test_require_argument_is_skipped(self):
        verdict = verdict_for('const x = require("./한글");', '"./한글"')
        assert verdict.reason is SkipReason.IMPORT_OR_EXPORT_SOURCE

    def test_already_wrapped(self):
        verdict = verdict_for('const a = t("안녕");', '"안녕"')
        assert verdict.reason is SkipReason.ALREADY_WRAPPED

    def test_interpolated_key_is_already_wrapped(self):
        verdict = verdict_for('const a = t("안녕 {{name}}", { name });', '"안녕 {{name}}"')
        assert verdict.reason is SkipReason.ALREADY_WRAPPED

    def test_other_call_argument_wraps(self):
        assert verdict_for('alert("안녕");', '"안녕"').wrap

    def test_blank_string_is_empty(self):
        verdict = verdict_for('const a = "   ";', '"   "')
        assert verdict.reason is SkipReason.EMPTY

    def test_string_without_target_characters(self):
        verdict = verdict_for('const a = "Hello";', '"Hello"')
        assert verdict.reason is SkipReason.NO_TARGET_LANGUAGE_CONTENT

    def test_custom_character_range(self):
        assert verdict_for('const a = "こんにちは";', '"こんにちは"', target_characters="ぁ-ん").wrap

    def test_verdict_repr(self):
        assert repr(WRAP) == "Wrap"
        verdict = verdict_for('const a = "";', '""')
        assert repr(verdict) == "Skip(EMPTY)"


class TestIgnoreMarker:
    def test_line_comment_above(self):
        code = 'function A() {\n  // i18n-ignore\n  const a = "안녕";\n}'
        verdict = verdict_for(code, '"안녕"')
        assert verdict.reason is SkipReason.IGNORE_COMMENT

    def test_block_comment_on_same_line(self):
        code = 'const a = /* i18n-ignore */ "안녕";'
        verdict = verdict_for(code, '"안녕"')
        assert verdict.reason is SkipReason.IGNORE_COMMENT

    def test_attached_comment_outside_line_window(self):
        code = '// i18n-ignore\nconst a = [\n  1,\n  2,\n  "안녕",\n];'
        module = parse(code)
        node = find_node(module, "string", '"안녕"')
        assert has_ignore_marker(node, module)

    def test_marker_far_above_other_statement_is_ignored(self):
        code = '// i18n-ignore\nconst a = 1;\nconst b = 2;\nconst c = 3;\nconst d = "안녕";'
        assert verdict_for(code, '"안녕"').wrap

    def test_markup_container_marker(self):
        code = (
            "const A = () => (\n"
            "  <div>\n"
            "    {/* i18n-ignore */}\n"
            "    <p>무시</p>\n"
            "  </div>\n"
            ");"
        )
        verdict = verdict_for(code, "무시", kind="jsx_text")
        assert verdict.reason is SkipReason.IGNORE_COMMENT

    def test_trailing_comment_on_same_line(self):
        verdict = verdict_for('const a = "안녕"; // i18n-ignore', '"안녕"')
        assert verdict.reason is SkipReason.IGNORE_COMMENT

    def test_unrelated_comment_does_not_ignore(self):
        code = 'function A() {\n  // greeting\n  const a = "안녕";\n}'
        assert verdict_for(code, '"안녕"').wrap
