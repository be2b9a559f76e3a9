"""Tests for binding injection and concise-body conversion."""

import pytest
from conftest import find_node, make_config, parse, wrap

from i18nwrap.errors import GenerationError
from i18nwrap.injector import binding_statement, convert_concise_body, inject_bindings, mark_async
from i18nwrap.rewriter import rewrite_module
from i18nwrap.structures import ClientStrategy, Framework, ServerStrategy


class TestClientBinding:
    def test_binding_is_first_statement(self):
        code = "function Component() {\n  return <div>안녕하세요</div>;\n}\n"
        assert wrap(code) == (
            'import { useTranslation } from "i18nexus";\n'
            "function Component() {\n"
            "  const { t } = useTranslation();\n"
            '  return <div>{t("안녕하세요")}</div>;\n'
            "}\n"
        )

    def test_indentation_follows_first_statement(self):
        code = "    function A() {\n        const x = 1;\n        return <p>가</p>;\n    }\n"
        assert "{\n        const { t } = useTranslation();\n        const x = 1;" in wrap(code)

    def test_one_line_body_is_split(self):
        code = "function A() { return <div>안녕</div>; }\n"
        assert wrap(code) == (
            'import { useTranslation } from "i18nexus";\n'
            "function A() {\n"
            "  const { t } = useTranslation();\n"
            '  return <div>{t("안녕")}</div>; }\n'
        )

    def test_existing_binding_is_reused(self):
        code = (
            'import { useTranslation } from "i18nexus";\n'
            "function A() {\n"
            "  const { t } = useTranslation();\n"
            "  return <p>안녕</p>;\n"
            "}\n"
        )
        output = wrap(code)
        assert output.count("useTranslation();") == 1
        assert output.count("import ") == 1
        assert '<p>{t("안녕")}</p>' in output

    def test_parameter_named_t_satisfies_scope(self):
        code = "function A({ t }) {\n  return <p>안녕</p>;\n}\n"
        output = wrap(code)
        assert "useTranslation" not in output
        assert '<p>{t("안녕")}</p>' in output

    def test_module_level_t_satisfies_scope(self):
        code = 'import { t } from "./i18n";\nfunction A() {\n  return <p>안녕</p>;\n}\n'
        assert "useTranslation" not in wrap(code)

    def test_custom_hook_name(self):
        code = "function A() {\n  return <p>안녕</p>;\n}\n"
        output = wrap(code, strategy=ClientStrategy("useI18n"))
        assert "const { t } = useI18n();" in output
        assert 'import { useI18n } from "i18nexus";' in output

    def test_hook_scope(self):
        code = "export function useLabel() {\n  return \"라벨\";\n}\n"
        output = wrap(code, path="useLabel.ts")
        assert "const { t } = useTranslation();" in output
        assert 'return t("라벨");' in output

    def test_memo_wrapped_component(self):
        code = "const Card = memo(() => <div>카드</div>);\n"
        assert wrap(code).endswith(
            "const Card = memo(() => {\n"
            "  const { t } = useTranslation();\n"
            '  return <div>{t("카드")}</div>;\n'
            "});\n"
        )

    def test_nested_components_each_get_binding(self):
        code = (
            "function Outer() {\n"
            "  const Inner = () => <span>안쪽</span>;\n"
            "  return <div>바깥<Inner /></div>;\n"
            "}\n"
        )
        output = wrap(code)
        assert output.count("const { t } = useTranslation();") == 2
        assert "const Inner = () => {\n    const { t } = useTranslation();\n" in output


class TestServerBinding:
    def test_function_marked_async(self):
        code = "export default function Page() {\n  return <main>환영합니다</main>;\n}\n"
        assert wrap(code, mode="server") == (
            'import { getServerTranslation } from "i18nexus";\n'
            "export default async function Page() {\n"
            "  const { t } = await getServerTranslation();\n"
            '  return <main>{t("환영합니다")}</main>;\n'
            "}\n"
        )

    def test_new_import_precedes_async_function(self):
        code = "function Page() {\n  return <main>환영</main>;\n}\n"
        output = wrap(code, mode="server")
        assert output == (
            'import { getServerTranslation } from "i18nexus";\n'
            "async function Page() {\n"
            "  const { t } = await getServerTranslation();\n"
            '  return <main>{t("환영")}</main>;\n'
            "}\n"
        )
        assert wrap(output, mode="server") == output

    def test_new_import_after_header_comment(self):
        code = "// 페이지\nfunction Page() {\n  return <main>환영</main>;\n}\n"
        assert wrap(code, mode="server").startswith(
            "// 페이지\n"
            'import { getServerTranslation } from "i18nexus";\n'
            "async function Page() {\n"
        )

    def test_async_is_not_duplicated(self):
        code = "async function Page() {\n  return <main>환영</main>;\n}\n"
        output = wrap(code, mode="server")
        assert "async function Page()" in output
        assert "async async" not in output

    def test_server_arrow_concise_body(self):
        code = "const Page = () => <main>환영</main>;\n"
        output = wrap(code, mode="server")
        assert "const Page = async () => {\n  const { t } = await getServerTranslation();" in output

    def test_custom_server_function_and_source(self):
        code = "async function Page() {\n  return <main>환영</main>;\n}\n"
        output = wrap(
            code,
            strategy=ServerStrategy("getT"),
            server_import_source="@/i18n/server",
        )
        assert "const { t } = await getT();" in output
        assert 'import { getT } from "@/i18n/server";' in output


class TestConciseBody:
    def test_expression_is_returned_once(self):
        module = parse("const A = () => compute(1);\n")
        scope = find_node(module, "arrow_function")
        convert_concise_body(module, scope, "setup();")
        assert module.generate() == (
            "const A = () => {\n  setup();\n  return compute(1);\n};\n"
        )

    def test_parenthesized_body_kept(self):
        module = parse("const A = () => (\n  <p>x</p>\n);\n")
        scope = find_node(module, "arrow_function")
        convert_concise_body(module, scope, "setup();")
        assert module.generate() == (
            "const A = () => {\n  setup();\n  return (\n  <p>x</p>\n);\n};\n"
        )

    def test_block_body_rejected(self):
        module = parse("const A = () => { return 1; };\n")
        scope = find_node(module, "arrow_function")
        with pytest.raises(GenerationError):
            convert_concise_body(module, scope, "setup();")


class TestInjectionResult:
    def test_requirement_for_client(self):
        module = parse("function A() {\n  return <p>가</p>;\n}\n")
        config = make_config(framework=Framework.NEXT_LIKE)
        result = inject_bindings(module, rewrite_module(module, config), config)
        assert result.injected == 1
        assert result.requirement.needs_hook_import
        assert result.requirement.needs_server_import is None
        assert result.requirement.needs_use_client_directive

    def test_requirement_for_server(self):
        module = parse("function A() {\n  return <p>가</p>;\n}\n")
        config = make_config(mode="server")
        result = inject_bindings(module, rewrite_module(module, config), config)
        assert not result.requirement.needs_hook_import
        assert result.requirement.needs_server_import == "getServerTranslation"
        assert not result.requirement.needs_use_client_directive

    def test_satisfied_scope_needs_no_import(self):
        module = parse("function A({ t }) {\n  return <p>가</p>;\n}\n")
        config = make_config()
        result = inject_bindings(module, rewrite_module(module, config), config)
        assert result.injected == 0
        assert result.satisfied == 1
        assert result.requirement.empty

    def test_mark_async_is_idempotent(self):
        module = parse("async function A() {}\n")
        assert not mark_async(module, find_node(module, "function_declaration"))

    def test_mark_async_prefixes_first_token(self):
        module = parse("const A = (x) => x;\n")
        assert mark_async(module, find_node(module, "arrow_function"))
        module.insert(0, "// header\n")
        assert module.generate() == "// header\nconst A = async (x) => x;\n"

    def test_binding_statement_shapes(self):
        assert binding_statement(ClientStrategy()) == "const { t } = useTranslation();"
        assert binding_statement(ServerStrategy()) == "const { t } = await getServerTranslation();"
