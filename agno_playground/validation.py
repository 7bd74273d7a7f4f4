"""
Cross-field validation of agent configurations.

The validator runs five independent rule groups (model capabilities,
feature dependencies, tools, resources, conflicts) and concatenates their
findings. Problems are reported as data, never raised.
"""

from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

try:
    from .models import (
        ModelConfig, ExtendedAgentConfig, ValidationResult,
        ValidationError, ValidationWarning, ValidationSuggestion,
        ValidationErrorType, ValidationWarningType, ValidationSuggestionType,
        StorageConfig, MemoryConfig
    )
    from .capabilities import get_capabilities, REASONING_MODEL_ID
except ImportError:
    import sys
    import os
    sys.path.append(os.path.dirname(__file__))
    from models import (
        ModelConfig, ExtendedAgentConfig, ValidationResult,
        ValidationError, ValidationWarning, ValidationSuggestion,
        ValidationErrorType, ValidationWarningType, ValidationSuggestionType,
        StorageConfig, MemoryConfig
    )
    from capabilities import get_capabilities, REASONING_MODEL_ID

TOOL_CALL_LIMIT_THRESHOLD = 20
MAX_RECOMMENDED_RETRIES = 5
STANDARD_SCHEMAS = ("public", "ai")
POSTGRES_SCHEMES = ("postgresql", "postgres")

DEFAULT_MEMORY_TABLE = "user_memories"
DEFAULT_KNOWLEDGE_TABLE = "knowledge"
DEFAULT_STORAGE_TABLE = "sessions"

# Preset partial configurations keyed by agent type
AGENT_TYPE_RECOMMENDATIONS: Dict[str, Dict[str, Any]] = {
    "basic_with_storage": {
        "storage": {"enabled": True, "table_name": "sessions", "schema": "public"},
        "history": {
            "add_history_to_messages": True,
            "num_history_runs": 3,
            "read_chat_history": True
        },
        "add_datetime_to_instructions": True,
        "markdown": True,
        "stream": True
    },
    "simple_no_storage": {
        "markdown": True,
        "stream": True
    },
    "basic_assistant": {
        "storage": {"enabled": True, "table_name": "sessions"},
        "history": {"add_history_to_messages": True, "num_history_runs": 3},
        "markdown": True,
        "stream": True
    },
    "smart_assistant": {
        "storage": {"enabled": True, "table_name": "sessions"},
        "memory": {"enabled": True, "table_name": "user_memories"},
        "enable_agentic_memory": True,
        "enable_user_memories": True,
        "history": {"add_history_to_messages": True, "num_history_runs": 5},
        "markdown": True,
        "stream": True
    },
    "analyst_agent": {
        "reasoning": {"enabled": True, "min_steps": 2, "max_steps": 10},
        "structured_outputs": True,
        "show_tool_calls": True,
        "tool_call_limit": 20,
        "history": {"add_history_to_messages": True, "num_history_runs": 10},
        "markdown": True
    },
    "knowledge_agent": {
        "knowledge": {"enabled": True, "type": "url"},
        "search_knowledge": True,
        "add_references": True,
        "references_format": "json",
        "storage": {"enabled": True},
        "history": {"add_history_to_messages": True, "num_history_runs": 5}
    }
}


class _IssueCollector:
    """Accumulates the issues of one rule group"""

    def __init__(self):
        self.errors: List[ValidationError] = []
        self.warnings: List[ValidationWarning] = []
        self.suggestions: List[ValidationSuggestion] = []

    def error(self, field: str, message: str, type: ValidationErrorType) -> None:
        self.errors.append(ValidationError(field=field, message=message, type=type))

    def warning(self, field: str, message: str, type: ValidationWarningType) -> None:
        self.warnings.append(ValidationWarning(field=field, message=message, type=type))

    def suggestion(self, field: str, message: str, type: ValidationSuggestionType,
                   suggested_value: Any = None) -> None:
        self.suggestions.append(ValidationSuggestion(
            field=field, message=message, type=type, suggestedValue=suggested_value
        ))


class AgentConfigValidator:
    """Validates an agent configuration against a model and its attached tools"""

    @classmethod
    def validate_config(
        cls,
        model_config: ModelConfig,
        agent_config: ExtendedAgentConfig,
        tool_ids: Optional[Sequence[str]] = None
    ) -> ValidationResult:
        """Run every rule group and merge the findings in a fixed order"""
        tool_ids = list(tool_ids or [])
        groups = [
            cls._validate_model_capabilities(model_config, agent_config),
            cls._validate_dependencies(agent_config),
            cls._validate_tools(model_config, tool_ids, agent_config),
            cls._validate_resources(agent_config),
            cls._validate_conflicts(agent_config),
        ]

        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []
        suggestions: List[ValidationSuggestion] = []
        for group in groups:
            errors.extend(group.errors)
            warnings.extend(group.warnings)
            suggestions.extend(group.suggestions)

        return ValidationResult(
            isValid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions
        )

    @staticmethod
    def _validate_model_capabilities(model_config: ModelConfig, agent_config: ExtendedAgentConfig) -> _IssueCollector:
        issues = _IssueCollector()
        model_id = model_config.id
        capabilities = get_capabilities(model_id)

        if capabilities is None:
            issues.warning(
                "model_config.id",
                f'Unknown model "{model_id}". Capabilities cannot be verified.',
                ValidationWarningType.COMPATIBILITY
            )
            return issues

        if agent_config.reasoning and agent_config.reasoning.enabled and not capabilities.reasoning:
            issues.error(
                "reasoning.enabled",
                f'Model "{model_id}" does not support reasoning. Use {REASONING_MODEL_ID} or newer.',
                ValidationErrorType.INCOMPATIBLE_CONFIG
            )
            issues.suggestion(
                "model_config.id",
                f"Switch to {REASONING_MODEL_ID} for reasoning support",
                ValidationSuggestionType.ALTERNATIVE,
                REASONING_MODEL_ID
            )

        if agent_config.show_tool_calls and not capabilities.tool_calls:
            issues.error(
                "show_tool_calls",
                f'Model "{model_id}" does not support tool calls.',
                ValidationErrorType.INCOMPATIBLE_CONFIG
            )

        if agent_config.structured_outputs and not capabilities.structured_outputs:
            issues.warning(
                "structured_outputs",
                f'Model "{model_id}" does not natively support structured outputs. Parser will be used instead.',
                ValidationWarningType.PERFORMANCE
            )
            issues.suggestion(
                "parser.enabled",
                "Enable parser for structured outputs with this model",
                ValidationSuggestionType.OPTIMIZATION,
                True
            )

        if agent_config.use_json_mode and not capabilities.supports_json_mode:
            issues.error(
                "use_json_mode",
                f'Model "{model_id}" does not support JSON mode.',
                ValidationErrorType.INCOMPATIBLE_CONFIG
            )

        if agent_config.stream and not capabilities.streaming:
            issues.warning(
                "stream",
                f'Model "{model_id}" may not support streaming optimally.',
                ValidationWarningType.PERFORMANCE
            )

        return issues

    @staticmethod
    def _validate_dependencies(agent_config: ExtendedAgentConfig) -> _IssueCollector:
        issues = _IssueCollector()
        memory = agent_config.memory
        storage = agent_config.storage
        knowledge = agent_config.knowledge
        team = agent_config.team

        if (memory and memory.enabled) or agent_config.enable_agentic_memory:
            if not (storage and storage.enabled):
                issues.error(
                    "memory.enabled",
                    "Memory requires storage to be enabled for persistence.",
                    ValidationErrorType.MISSING_DEPENDENCY
                )
                issues.suggestion(
                    "storage.enabled",
                    "Enable storage for memory functionality",
                    ValidationSuggestionType.BEST_PRACTICE,
                    True
                )

            if not (memory and memory.table_name):
                issues.warning(
                    "memory.table_name",
                    f'Memory table name not specified. Using default "{DEFAULT_MEMORY_TABLE}".',
                    ValidationWarningType.SUBOPTIMAL
                )

        knowledge_enabled = bool(knowledge and knowledge.enabled)
        if knowledge_enabled:
            if not knowledge.urls and not knowledge.pdf_paths:
                issues.error(
                    "knowledge",
                    "Knowledge base enabled but no URLs or PDF paths provided.",
                    ValidationErrorType.MISSING_DEPENDENCY
                )

            if not knowledge.table_name:
                issues.warning(
                    "knowledge.table_name",
                    f'Knowledge table name not specified. Using default "{DEFAULT_KNOWLEDGE_TABLE}".',
                    ValidationWarningType.SUBOPTIMAL
                )

        if agent_config.search_knowledge and not knowledge_enabled:
            issues.error(
                "search_knowledge",
                "Knowledge search enabled but knowledge base is not configured.",
                ValidationErrorType.MISSING_DEPENDENCY
            )

        if team and team.enabled:
            if agent_config.respond_directly:
                issues.warning(
                    "respond_directly",
                    "Direct response conflicts with team coordination. Consider disabling for better team flow.",
                    ValidationWarningType.COMPATIBILITY
                )

            if not agent_config.add_transfer_instructions:
                issues.suggestion(
                    "add_transfer_instructions",
                    "Enable transfer instructions for better team coordination",
                    ValidationSuggestionType.BEST_PRACTICE,
                    True
                )

        return issues

    @staticmethod
    def _validate_tools(model_config: ModelConfig, tool_ids: List[str], agent_config: ExtendedAgentConfig) -> _IssueCollector:
        issues = _IssueCollector()
        if not tool_ids:
            return issues

        capabilities = get_capabilities(model_config.id)
        if capabilities is None or not capabilities.tool_calls:
            issues.error(
                "tool_ids",
                f'Model "{model_config.id}" does not support tool calls but {len(tool_ids)} tools are selected.',
                ValidationErrorType.INCOMPATIBLE_CONFIG
            )

        if agent_config.tool_call_limit and agent_config.tool_call_limit > TOOL_CALL_LIMIT_THRESHOLD:
            issues.warning(
                "tool_call_limit",
                "High tool call limit may impact performance and cost.",
                ValidationWarningType.PERFORMANCE
            )

        if agent_config.search_knowledge and "search_knowledge" not in tool_ids:
            issues.suggestion(
                "tool_ids",
                "Knowledge search will automatically add search_knowledge tool",
                ValidationSuggestionType.OPTIMIZATION
            )

        history = agent_config.history
        if history and history.read_chat_history and "read_chat_history" not in tool_ids:
            issues.suggestion(
                "tool_ids",
                "Chat history reading will automatically add read_chat_history tool",
                ValidationSuggestionType.OPTIMIZATION
            )

        return issues

    @classmethod
    def _validate_resources(cls, agent_config: ExtendedAgentConfig) -> _IssueCollector:
        issues = _IssueCollector()
        memory = agent_config.memory
        storage = agent_config.storage

        if memory and memory.enabled and memory.db_url:
            if not cls.is_valid_postgres_url(memory.db_url):
                issues.error(
                    "memory.db_url",
                    "Invalid PostgreSQL connection URL for memory storage.",
                    ValidationErrorType.RESOURCE_UNAVAILABLE
                )

        if storage and storage.enabled and not storage.table_name:
            issues.warning(
                "storage.table_name",
                f'Storage table name not specified. Using default "{DEFAULT_STORAGE_TABLE}".',
                ValidationWarningType.SUBOPTIMAL
            )

        if storage and storage.schema_name and storage.schema_name not in STANDARD_SCHEMAS:
            issues.warning(
                "storage.schema",
                f'Schema "{storage.schema_name}" is not standard. Ensure it exists in your database.',
                ValidationWarningType.COMPATIBILITY
            )

        return issues

    @staticmethod
    def _validate_conflicts(agent_config: ExtendedAgentConfig) -> _IssueCollector:
        issues = _IssueCollector()

        if agent_config.use_json_mode and agent_config.stream:
            issues.warning(
                "use_json_mode",
                "JSON mode with streaming may produce incomplete JSON objects.",
                ValidationWarningType.COMPATIBILITY
            )

        if agent_config.structured_outputs and agent_config.use_json_mode:
            issues.warning(
                "structured_outputs",
                "Structured outputs and JSON mode are redundant. Choose one approach.",
                ValidationWarningType.SUBOPTIMAL
            )

        if agent_config.structured_outputs and agent_config.parser and agent_config.parser.enabled:
            issues.suggestion(
                "temperature",
                "Consider lower temperature (0.1-0.3) for more consistent structured outputs",
                ValidationSuggestionType.OPTIMIZATION
            )

        if (agent_config.retries or 0) > MAX_RECOMMENDED_RETRIES:
            issues.warning(
                "retries",
                "High retry count may cause long delays on failures.",
                ValidationWarningType.PERFORMANCE
            )

        return issues

    @staticmethod
    def is_valid_postgres_url(url: str) -> bool:
        """True when the URL parses and uses a PostgreSQL scheme"""
        try:
            parsed = urlparse(url)
        except (TypeError, ValueError):
            return False
        return parsed.scheme in POSTGRES_SCHEMES

    @staticmethod
    def get_recommendations_for_agent_type(agent_type: str) -> Dict[str, Any]:
        """Preset partial configuration for an agent type, empty for unknown types"""
        recommendation = AGENT_TYPE_RECOMMENDATIONS.get(agent_type, {})
        return ExtendedAgentConfig(**recommendation).model_dump(exclude_none=True, by_alias=True)

    @staticmethod
    def auto_configure_dependencies(config: ExtendedAgentConfig) -> ExtendedAgentConfig:
        """Return a copy of the config with the dependencies of enabled features switched on"""
        new_config = config.model_copy(deep=True)

        if (config.memory and config.memory.enabled) or config.enable_agentic_memory:
            if new_config.storage is None:
                new_config.storage = StorageConfig(enabled=True, table_name=DEFAULT_STORAGE_TABLE)
            if new_config.memory is None:
                new_config.memory = MemoryConfig(enabled=True)
            if not new_config.memory.table_name:
                new_config.memory.table_name = DEFAULT_MEMORY_TABLE

        if config.knowledge and config.knowledge.enabled:
            if new_config.search_knowledge is None:
                new_config.search_knowledge = True
            if not new_config.knowledge.table_name:
                new_config.knowledge.table_name = DEFAULT_KNOWLEDGE_TABLE

        if config.show_tool_calls is None and config.tool_call_limit:
            new_config.show_tool_calls = True

        if config.reasoning and config.reasoning.enabled:
            if not new_config.reasoning.min_steps:
                new_config.reasoning.min_steps = 1
            if not new_config.reasoning.max_steps:
                new_config.reasoning.max_steps = 10

        return new_config


def validate_config(
    model_config: ModelConfig,
    agent_config: ExtendedAgentConfig,
    tool_ids: Optional[Sequence[str]] = None
) -> ValidationResult:
    return AgentConfigValidator.validate_config(model_config, agent_config, tool_ids)
