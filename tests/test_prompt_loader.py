"""Tests for building templates and registering them as prompts and tools."""

import logging

import pytest

from sensei.mcp_servers.registry import TemplateRecord, TemplateRegistry
from sensei.utils import prompt_loader
from sensei.utils.prompt_loader import (
    TemplateTool,
    build_template,
    load_prompts,
    register_template,
    template_input_schema,
)
from sensei.utils.templates import PromptMetadata

from conftest import write


def make_record(body, variables=(), **meta):
    return TemplateRecord(name="tpl", body=body, metadata=PromptMetadata(**meta),
                          variables=tuple(variables))


class TestBuildTemplate:
    def test_pipeline_order(self, log):
        raw = (
            "---\ndescription: Greets\nregister_as_tool: true\n---\n\n"
            "Hi {{name}}. {{resource:sig}}"
        )

        record = build_template("greet", raw, {"sig": "From {{team}}"}, log=log)

        assert record.name == "greet"
        assert record.body == "Hi {{name}}. From {{team}}"
        assert record.metadata.description == "Greets"
        # Variables come from the resolved body, resource content included.
        assert record.variables == ("name", "team")
        assert record.is_tool
        assert record.tool_name == "greet"

    def test_variables_never_include_resources(self, log):
        record = build_template("t", "{{a}} {{resource:gone}}", {}, log=log)

        assert record.variables == ("a",)
        assert "[Resource not found: gone]" in record.body


class TestRegisterTemplate:
    def test_always_registers_prompt(self, fake_mcp, log):
        record = make_record("Plain body", description="Desc")

        register_template(fake_mcp, record, log=log)

        fn, kwargs = fake_mcp.prompts["tpl"]
        assert kwargs["description"] == "Desc"
        messages = fn()
        assert messages[0].role == "user"
        assert messages[0].content.text == "Plain body"
        assert fake_mcp.tools == {}

    def test_prompt_without_description(self, fake_mcp, log):
        register_template(fake_mcp, make_record("Body"), log=log)

        assert fake_mcp.prompts["tpl"][1]["description"] is None

    def test_assistant_role(self, fake_mcp, log):
        register_template(fake_mcp, make_record("Body", role="Assistant"), log=log)

        assert fake_mcp.prompts["tpl"][0]()[0].role == "assistant"

    def test_unknown_role_falls_back_to_user(self, fake_mcp, log, caplog):
        with caplog.at_level(logging.WARNING, logger="sensei.tests"):
            register_template(fake_mcp, make_record("Body", role="system"), log=log)

        assert fake_mcp.prompts["tpl"][0]()[0].role == "user"
        assert "unsupported role" in caplog.text

    def test_tool_substitutes_variables(self, fake_mcp, log):
        record = make_record("x is {{x}}; twice {{x}}", ["x"], register_as_tool=True)

        register_template(fake_mcp, record, log=log)

        tool, _ = fake_mcp.tools["tpl"]
        assert isinstance(tool, TemplateTool)
        assert tool.render({"x": "5"}) == "x is 5; twice 5"

    def test_tool_schema_lists_variables_then_input(self, fake_mcp, log):
        record = make_record("{{b}} {{a}}", ["b", "a"], register_as_tool=True)

        register_template(fake_mcp, record, log=log)

        tool, _ = fake_mcp.tools["tpl"]
        assert list(tool.parameters["properties"]) == ["b", "a", "input"]
        assert not tool.parameters.get("required")
        assert all(p["default"] is None for p in tool.parameters["properties"].values())

    def test_tool_appends_catch_all_input(self, fake_mcp, log):
        record = make_record("Hello {{name}}", ["name"], register_as_tool=True)

        register_template(fake_mcp, record, log=log)

        tool, _ = fake_mcp.tools["tpl"]
        assert tool.render({"name": "Ann", "input": "PS"}) == "Hello Ann\n\nPS"
        assert tool.render({}) == "Hello "

    def test_tool_with_input_variable(self, fake_mcp, log):
        record = make_record("Code: {{input}}", ["input"], register_as_tool=True)

        register_template(fake_mcp, record, log=log)

        tool, _ = fake_mcp.tools["tpl"]
        assert list(tool.parameters["properties"]) == ["input"]
        assert tool.render({"input": "x = 1"}) == "Code: x = 1"

    def test_tool_name_override_and_description(self, fake_mcp, log):
        record = make_record("Body", register_as_tool=True, tool_name="custom", description="D")

        register_template(fake_mcp, record, log=log)

        assert "custom" in fake_mcp.tools
        assert fake_mcp.tools["custom"][1]["description"] == "D"
        assert "tpl" in fake_mcp.prompts

    def test_variables_that_are_not_identifiers_are_inputs(self, fake_mcp, log):
        record = make_record("Loop {{for}} and {{1st}} {{ok}}", ["for", "1st", "ok"],
                             register_as_tool=True)

        register_template(fake_mcp, record, log=log)

        tool, _ = fake_mcp.tools["tpl"]
        assert list(tool.parameters["properties"]) == ["for", "1st", "ok", "input"]
        assert tool.render({"for": "x", "1st": "y", "ok": "z"}) == "Loop x and y z"

    def test_null_and_non_string_arguments(self, fake_mcp, log):
        record = make_record("[{{a}}] [{{b}}]", ["a", "b"], register_as_tool=True)

        register_template(fake_mcp, record, log=log)

        tool, _ = fake_mcp.tools["tpl"]
        assert tool.render({"a": None, "b": 3}) == "[] [3]"

    @pytest.mark.asyncio
    async def test_tool_run_returns_text_content(self, fake_mcp, log):
        record = make_record("Hi {{who}}", ["who"], register_as_tool=True)

        register_template(fake_mcp, record, log=log)

        tool, _ = fake_mcp.tools["tpl"]
        result = await tool.run({"who": "there"})
        assert result.content[0].text == "Hi there"

    def test_duplicate_tool_name_rejected(self, fake_mcp, log):
        registry = TemplateRegistry()
        first = TemplateRecord(name="a", body="A",
                               metadata=PromptMetadata(register_as_tool=True, tool_name="same"))
        second = TemplateRecord(name="b", body="B",
                                metadata=PromptMetadata(register_as_tool=True, tool_name="same"))
        register_template(fake_mcp, first, registry, log)

        with pytest.raises(ValueError, match="Duplicate tool name"):
            register_template(fake_mcp, second, registry, log)

        # Nothing from the rejected template was registered.
        assert "b" not in fake_mcp.prompts
        assert fake_mcp.tools["same"][0].render({}) == "A"

    def test_failed_tool_leaves_no_prompt(self, fake_mcp, log, monkeypatch):
        def broken(variables):
            raise RuntimeError("bad tool")

        monkeypatch.setattr(prompt_loader, "template_input_schema", broken)
        registry = TemplateRegistry()

        with pytest.raises(RuntimeError):
            register_template(fake_mcp, make_record("Body", register_as_tool=True),
                              registry, log)

        assert fake_mcp.prompts == {}
        assert fake_mcp.tools == {}
        assert registry.prompts == {} and registry.tools == {}


class TestTemplateInputSchema:
    def test_optional_strings(self):
        schema = template_input_schema(("topic",))

        assert schema["type"] == "object"
        assert "required" not in schema
        topic = schema["properties"]["topic"]
        assert {"type": "string"} in topic["anyOf"]
        assert "{{topic}}" in topic["description"]

    def test_no_duplicate_input(self):
        assert list(template_input_schema(["input", "x"])["properties"]) == ["input", "x"]


class TestLoadPrompts:
    def test_loads_and_registers_directory(self, fake_mcp, log, content_dirs):
        prompts, _ = content_dirs
        resource_map = {"guides/style": "Be brief."}

        summary = load_prompts(fake_mcp, prompts, resource_map, log=log)

        assert summary.loaded == 3
        assert summary.tools == 1
        assert summary.failed == []
        assert set(fake_mcp.prompts) == {"sensei", "explain", "nested/greet"}
        assert set(fake_mcp.tools) == {"explain_concept"}

        tool, _ = fake_mcp.tools["explain_concept"]
        assert (tool.render({"topic": "closures", "level": "new"})
                == "Explain closures to a new reader. Be brief.")

        greet = fake_mcp.prompts["nested/greet"][0]()
        assert greet[0].content.text == "Hello {{name}}! [Resource not found: missing/thing]"

    def test_failed_registration_does_not_stop_loading(self, fake_mcp, log, tmp_path):
        write(tmp_path, "a.txt", "---\nregister_as_tool: true\ntool_name: dup\n---\n\nA")
        write(tmp_path, "b.txt", "---\nregister_as_tool: true\ntool_name: dup\n---\n\nB")
        write(tmp_path, "c.txt", "C")

        summary = load_prompts(fake_mcp, tmp_path, {}, log=log)

        assert summary.loaded == 2
        assert summary.failed == ["b"]
        assert set(fake_mcp.prompts) == {"a", "c"}

    def test_missing_directory_is_created_and_empty(self, fake_mcp, log, tmp_path):
        summary = load_prompts(fake_mcp, tmp_path / "prompts", {}, log=log)

        assert (tmp_path / "prompts").is_dir()
        assert summary.loaded == 0
        assert fake_mcp.prompts == {}
