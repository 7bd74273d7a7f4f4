"""Tests for agent configuration validation."""
import pytest

from agno_playground.models import (
    ExtendedAgentConfig,
    ModelConfig,
    ValidationErrorType,
    ValidationSuggestionType,
    ValidationWarningType,
)
from agno_playground.validation import (
    AGENT_TYPE_RECOMMENDATIONS,
    AgentConfigValidator,
    validate_config,
)

GPT_4O = ModelConfig(provider="openai", id="gpt-4o")
GPT_41 = ModelConfig(provider="openai", id="gpt-4.1-2025-04-14")
CLAUDE = ModelConfig(provider="anthropic", id="claude-3-5-sonnet-20241022")


def config(**fields) -> ExtendedAgentConfig:
    return ExtendedAgentConfig.model_validate(fields)


def fields_of(issues):
    return [issue.field for issue in issues]


class TestModelCapabilities:
    """Tests for the model capability rules."""

    def test_reasoning_on_model_without_reasoning(self):
        result = validate_config(GPT_4O, config(reasoning={"enabled": True}))

        assert result.isValid is False
        assert fields_of(result.errors) == ["reasoning.enabled"]
        assert result.errors[0].type == ValidationErrorType.INCOMPATIBLE_CONFIG
        assert result.errors[0].message == (
            'Model "gpt-4o" does not support reasoning. Use gpt-4.1-2025-04-14 or newer.'
        )
        assert len(result.suggestions) == 1
        assert result.suggestions[0].field == "model_config.id"
        assert result.suggestions[0].suggestedValue == "gpt-4.1-2025-04-14"
        assert result.suggestions[0].type == ValidationSuggestionType.ALTERNATIVE

    def test_reasoning_on_reasoning_model(self):
        result = validate_config(GPT_41, config(reasoning={"enabled": True}))

        assert result.isValid is True
        assert result.errors == []

    def test_unknown_model_only_warns(self):
        result = validate_config(ModelConfig(id="mystery-model"), config(reasoning={"enabled": True}))

        assert result.isValid is True
        assert fields_of(result.warnings) == ["model_config.id"]
        assert result.warnings[0].type == ValidationWarningType.COMPATIBILITY
        assert result.warnings[0].message == 'Unknown model "mystery-model". Capabilities cannot be verified.'

    def test_structured_outputs_without_native_support(self):
        result = validate_config(CLAUDE, config(structured_outputs=True))

        assert result.isValid is True
        assert fields_of(result.warnings) == ["structured_outputs"]
        assert result.suggestions[0].field == "parser.enabled"
        assert result.suggestions[0].suggestedValue is True

    def test_json_mode_without_support(self):
        result = validate_config(CLAUDE, config(use_json_mode=True))

        assert fields_of(result.errors) == ["use_json_mode"]


class TestDependencies:
    """Tests for feature dependency rules."""

    def test_memory_without_storage(self):
        result = validate_config(GPT_4O, config(memory={"enabled": True, "table_name": "m"}))

        assert result.isValid is False
        assert fields_of(result.errors) == ["memory.enabled"]
        assert result.errors[0].message == "Memory requires storage to be enabled for persistence."
        assert result.errors[0].type == ValidationErrorType.MISSING_DEPENDENCY
        assert result.suggestions[0].field == "storage.enabled"
        assert result.suggestions[0].suggestedValue is True

    def test_agentic_memory_without_table_name(self):
        result = validate_config(
            GPT_4O,
            config(enable_agentic_memory=True, storage={"enabled": True, "table_name": "sessions"}),
        )

        assert result.isValid is True
        assert fields_of(result.warnings) == ["memory.table_name"]
        assert 'Using default "user_memories"' in result.warnings[0].message

    def test_knowledge_without_sources(self):
        result = validate_config(GPT_4O, config(knowledge={"enabled": True}))

        assert fields_of(result.errors) == ["knowledge"]
        assert fields_of(result.warnings) == ["knowledge.table_name"]

    def test_knowledge_with_sources(self):
        result = validate_config(
            GPT_4O,
            config(knowledge={"enabled": True, "urls": ["https://docs.example.com"], "table_name": "docs"}),
        )

        assert result.isValid is True
        assert result.warnings == []

    def test_search_knowledge_without_knowledge(self):
        result = validate_config(GPT_4O, config(search_knowledge=True))

        assert fields_of(result.errors) == ["search_knowledge"]

    def test_team_rules(self):
        result = validate_config(GPT_4O, config(team={"enabled": True}, respond_directly=True))

        assert result.isValid is True
        assert fields_of(result.warnings) == ["respond_directly"]
        assert fields_of(result.suggestions) == ["add_transfer_instructions"]


class TestTools:
    """Tests for tool rules."""

    def test_tools_on_unknown_model(self):
        result = validate_config(ModelConfig(id="mystery-model"), config(), ["duckduckgo", "calculator"])

        assert result.isValid is False
        assert result.errors[0].field == "tool_ids"
        assert result.errors[0].message == (
            'Model "mystery-model" does not support tool calls but 2 tools are selected.'
        )

    def test_no_tools_skips_tool_rules(self):
        result = validate_config(GPT_4O, config(tool_call_limit=50))

        assert result.warnings == []

    def test_high_tool_call_limit(self):
        result = validate_config(GPT_4O, config(tool_call_limit=21), ["calculator"])

        assert fields_of(result.warnings) == ["tool_call_limit"]

    def test_tool_call_limit_at_threshold(self):
        result = validate_config(GPT_4O, config(tool_call_limit=20), ["calculator"])

        assert result.warnings == []

    def test_implicit_tool_suggestions(self):
        result = validate_config(
            GPT_4O,
            config(
                search_knowledge=True,
                knowledge={"enabled": True, "urls": ["https://a"], "table_name": "k"},
                history={"read_chat_history": True},
            ),
            ["calculator"],
        )

        messages = [s.message for s in result.suggestions]
        assert messages == [
            "Knowledge search will automatically add search_knowledge tool",
            "Chat history reading will automatically add read_chat_history tool",
        ]


class TestResources:
    """Tests for resource rules."""

    def test_invalid_memory_db_url(self):
        result = validate_config(
            GPT_4O,
            config(
                memory={"enabled": True, "table_name": "m", "db_url": "mysql://localhost/db"},
                storage={"enabled": True, "table_name": "s"},
            ),
        )

        assert fields_of(result.errors) == ["memory.db_url"]
        assert result.errors[0].type == ValidationErrorType.RESOURCE_UNAVAILABLE

    def test_memory_db_url_with_driver_suffix(self):
        result = validate_config(
            GPT_4O,
            config(
                memory={"enabled": True, "table_name": "m", "db_url": "postgresql+psycopg://ai:ai@localhost:5532/ai"},
                storage={"enabled": True, "table_name": "s"},
            ),
        )

        # The driver suffix makes the scheme non-standard
        assert fields_of(result.errors) == ["memory.db_url"]

    @pytest.mark.parametrize("url, expected", [
        ("postgresql://ai:ai@localhost:5532/ai", True),
        ("postgres://localhost/db", True),
        ("sqlite:///tmp/agent.db", False),
        ("not a url", False),
    ])
    def test_is_valid_postgres_url(self, url, expected):
        assert AgentConfigValidator.is_valid_postgres_url(url) is expected

    def test_storage_defaults_and_schema(self):
        result = validate_config(GPT_4O, config(storage={"enabled": True, "schema": "custom"}))

        assert result.isValid is True
        assert fields_of(result.warnings) == ["storage.table_name", "storage.schema"]

    @pytest.mark.parametrize("schema", ["public", "ai"])
    def test_standard_schemas(self, schema):
        result = validate_config(GPT_4O, config(storage={"enabled": True, "table_name": "s", "schema": schema}))

        assert result.warnings == []


class TestConflicts:
    """Tests for conflicting option rules."""

    def test_json_mode_and_streaming(self):
        result = validate_config(GPT_4O, config(use_json_mode=True, stream=True))

        assert fields_of(result.warnings) == ["use_json_mode"]

    def test_structured_outputs_and_json_mode(self):
        result = validate_config(GPT_4O, config(structured_outputs=True, use_json_mode=True))

        assert fields_of(result.warnings) == ["structured_outputs"]

    def test_structured_outputs_with_parser(self):
        result = validate_config(GPT_4O, config(structured_outputs=True, parser={"enabled": True}))

        assert fields_of(result.suggestions) == ["temperature"]

    def test_retries(self):
        assert validate_config(GPT_4O, config(retries=5)).warnings == []
        assert fields_of(validate_config(GPT_4O, config(retries=6)).warnings) == ["retries"]


class TestValidateConfig:
    """Tests for the combined result."""

    def test_empty_config_is_valid(self):
        result = validate_config(GPT_4O, config())

        assert result.isValid is True
        assert result.errors == []
        assert result.warnings == []
        assert result.suggestions == []

    def test_groups_are_concatenated_in_order(self):
        result = validate_config(
            GPT_4O,
            config(
                reasoning={"enabled": True},
                memory={"enabled": True, "table_name": "m"},
                retries=9,
            ),
            ["calculator"],
        )

        assert fields_of(result.errors) == ["reasoning.enabled", "memory.enabled"]
        assert fields_of(result.suggestions) == ["model_config.id", "storage.enabled"]
        assert fields_of(result.warnings) == ["retries"]

    def test_is_valid_matches_errors(self):
        for agent_config in (config(), config(search_knowledge=True), config(use_json_mode=True, stream=True)):
            result = validate_config(GPT_4O, agent_config)
            assert result.isValid == (len(result.errors) == 0)

    def test_validation_is_pure(self):
        agent_config = config(memory={"enabled": True})
        before = agent_config.model_dump()

        first = validate_config(GPT_4O, agent_config)
        second = validate_config(GPT_4O, agent_config)

        assert first == second
        assert agent_config.model_dump() == before


class TestRecommendations:
    """Tests for presets and auto-configuration."""

    def test_known_agent_type(self):
        recommendation = AgentConfigValidator.get_recommendations_for_agent_type("basic_with_storage")

        assert recommendation["storage"] == {"enabled": True, "table_name": "sessions", "schema": "public"}
        assert recommendation["history"]["num_history_runs"] == 3
        assert recommendation["stream"] is True

    def test_unknown_agent_type(self):
        assert AgentConfigValidator.get_recommendations_for_agent_type("nope") == {}

    @pytest.mark.parametrize("agent_type", sorted(AGENT_TYPE_RECOMMENDATIONS))
    def test_presets_are_valid_configs(self, agent_type):
        recommendation = AgentConfigValidator.get_recommendations_for_agent_type(agent_type)

        assert ExtendedAgentConfig.model_validate(recommendation).model_dump(exclude_none=True, by_alias=True) == recommendation

    def test_auto_configure_memory(self):
        original = config(memory={"enabled": True})
        configured = AgentConfigValidator.auto_configure_dependencies(original)

        assert configured.storage.enabled is True
        assert configured.storage.table_name == "sessions"
        assert configured.memory.table_name == "user_memories"
        assert original.storage is None
        assert original.memory.table_name is None

    def test_auto_configure_keeps_existing_storage(self):
        configured = AgentConfigValidator.auto_configure_dependencies(
            config(enable_agentic_memory=True, storage={"enabled": False, "table_name": "mine"})
        )

        assert configured.storage.table_name == "mine"
        assert configured.memory.enabled is True
        assert configured.memory.table_name == "user_memories"

    def test_auto_configure_knowledge_tools_and_reasoning(self):
        configured = AgentConfigValidator.auto_configure_dependencies(
            config(knowledge={"enabled": True}, tool_call_limit=5, reasoning={"enabled": True, "max_steps": 4})
        )

        assert configured.search_knowledge is True
        assert configured.knowledge.table_name == "knowledge"
        assert configured.show_tool_calls is True
        assert configured.reasoning.min_steps == 1
        assert configured.reasoning.max_steps == 4

    def test_auto_configure_respects_explicit_choices(self):
        configured = AgentConfigValidator.auto_configure_dependencies(
            config(knowledge={"enabled": True}, search_knowledge=False, show_tool_calls=False, tool_call_limit=5)
        )

        assert configured.search_knowledge is False
        assert configured.show_tool_calls is False
