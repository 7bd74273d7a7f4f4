from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, Any, List, Optional, Union
from enum import Enum
import time

class RunEvent(str, Enum):
    RUN_STARTED = "RunStarted"
    RUN_RESPONSE = "RunResponse"
    RUN_RESPONSE_CONTENT = "RunResponseContent"
    RUN_COMPLETED = "RunCompleted"
    RUN_ERROR = "RunError"
    TOOL_CALL_STARTED = "ToolCallStarted"
    TOOL_CALL_COMPLETED = "ToolCallCompleted"
    UPDATING_MEMORY = "UpdatingMemory"
    REASONING_STARTED = "ReasoningStarted"
    REASONING_STEP = "ReasoningStep"
    REASONING_COMPLETED = "ReasoningCompleted"

class ModelProvider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    MISTRAL = "mistral"
    OLLAMA = "ollama"

# Streaming events

class RunResponse(BaseModel):
    """One decoded event from an agent run stream"""
    model_config = ConfigDict(extra="allow")

    event: str = Field(default=RunEvent.RUN_RESPONSE_CONTENT.value, description="Event kind, usually a RunEvent value")
    content: Optional[Any] = None
    content_type: str = "str"
    run_id: Optional[str] = None
    agent_id: Optional[str] = None
    session_id: Optional[str] = None
    created_at: Union[int, float] = Field(default_factory=lambda: int(time.time()), description="Epoch seconds")
    extra_data: Optional[Any] = None
    thinking: Optional[Any] = None
    citations: Optional[Any] = None
    response_audio: Optional[Any] = None
    image: Optional[Any] = None
    tools: Optional[List[Any]] = None

    @field_validator("event", "content_type", "run_id", "agent_id", "session_id", mode="before")
    @classmethod
    def scalar_to_str(cls, value: Any) -> Any:
        # Runtimes may send numeric ids
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

# Model and agent configuration

class ModelConfig(BaseModel):
    """Model descriptor: provider, id and sampling parameters"""
    model_config = ConfigDict(extra="allow", protected_namespaces=())

    provider: str = ModelProvider.OPENAI.value
    id: str
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    max_completion_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    seed: Optional[int] = None
    stop: Optional[List[str]] = None
    reasoning_effort: Optional[str] = None
    timeout: Optional[float] = None
    max_retries: Optional[int] = None

class StorageConfig(BaseModel):
    enabled: Optional[bool] = None
    type: Optional[str] = None
    db_url: Optional[str] = None
    table_name: Optional[str] = None
    schema_name: Optional[str] = Field(default=None, alias="schema")
    mode: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

class MemoryConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    enabled: Optional[bool] = None
    type: Optional[str] = None
    db_url: Optional[str] = None
    table_name: Optional[str] = None
    delete_memories: Optional[bool] = None
    clear_memories: Optional[bool] = None

class KnowledgeConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    enabled: Optional[bool] = None
    type: Optional[str] = None
    urls: Optional[List[str]] = None
    pdf_paths: Optional[List[str]] = None
    table_name: Optional[str] = None
    vector_distance: Optional[str] = None

class HistoryConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    add_history_to_messages: Optional[bool] = None
    num_history_runs: Optional[int] = None
    read_chat_history: Optional[bool] = None

class ReasoningConfig(BaseModel):
    model_config = ConfigDict(extra="allow", protected_namespaces=())

    enabled: Optional[bool] = None
    model_id: Optional[str] = None
    min_steps: Optional[int] = None
    max_steps: Optional[int] = None

class ParserConfig(BaseModel):
    model_config = ConfigDict(extra="allow", protected_namespaces=())

    enabled: Optional[bool] = None
    model_id: Optional[str] = None
    prompt: Optional[str] = None

class TeamConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    enabled: Optional[bool] = None
    data: Optional[Dict[str, Any]] = None

class ExtendedAgentConfig(BaseModel):
    """Agent configuration as edited in the control panel. Every field is optional."""
    model_config = ConfigDict(extra="allow")

    # Storage and sessions
    storage: Optional[StorageConfig] = None
    session_name: Optional[str] = None
    search_previous_sessions_history: Optional[bool] = None
    num_history_sessions: Optional[int] = None

    # Memory
    memory: Optional[MemoryConfig] = None
    enable_agentic_memory: Optional[bool] = None
    enable_user_memories: Optional[bool] = None
    add_memory_references: Optional[bool] = None
    enable_session_summaries: Optional[bool] = None
    add_session_summary_references: Optional[bool] = None

    history: Optional[HistoryConfig] = None

    # Knowledge (RAG)
    knowledge: Optional[KnowledgeConfig] = None
    add_references: Optional[bool] = None
    references_format: Optional[str] = None
    search_knowledge: Optional[bool] = None
    update_knowledge: Optional[bool] = None

    # Tools
    show_tool_calls: Optional[bool] = None
    tool_call_limit: Optional[int] = None
    tool_choice: Optional[Union[str, Dict[str, Any]]] = None
    read_tool_call_history: Optional[bool] = None

    reasoning: Optional[ReasoningConfig] = None

    # System message
    markdown: Optional[bool] = None
    add_datetime_to_instructions: Optional[bool] = None
    add_state_in_messages: Optional[bool] = None

    # Responses and parsing
    retries: Optional[int] = None
    delay_between_retries: Optional[int] = None
    exponential_backoff: Optional[bool] = None
    parser: Optional[ParserConfig] = None
    structured_outputs: Optional[bool] = None
    use_json_mode: Optional[bool] = None

    # Streaming
    stream: Optional[bool] = None
    stream_intermediate_steps: Optional[bool] = None

    # Team
    team: Optional[TeamConfig] = None
    respond_directly: Optional[bool] = None
    add_transfer_instructions: Optional[bool] = None

    debug_mode: Optional[bool] = None

# Validation

class ModelCapabilities(BaseModel):
    """Feature flags of a known model"""
    model_config = ConfigDict(frozen=True)

    tool_calls: bool
    structured_outputs: bool
    streaming: bool
    reasoning: bool
    multimodal: bool
    max_context: int
    supports_json_mode: bool

class ValidationErrorType(str, Enum):
    MISSING_DEPENDENCY = "missing_dependency"
    INCOMPATIBLE_CONFIG = "incompatible_config"
    INVALID_VALUE = "invalid_value"
    RESOURCE_UNAVAILABLE = "resource_unavailable"

class ValidationWarningType(str, Enum):
    PERFORMANCE = "performance"
    COMPATIBILITY = "compatibility"
    DEPRECATED = "deprecated"
    SUBOPTIMAL = "suboptimal"

class ValidationSuggestionType(str, Enum):
    OPTIMIZATION = "optimization"
    BEST_PRACTICE = "best_practice"
    ALTERNATIVE = "alternative"

class ValidationError(BaseModel):
    """Blocking problem: the agent cannot run with this configuration"""
    field: str
    message: str
    type: ValidationErrorType

class ValidationWarning(BaseModel):
    """Degraded or unexpected behaviour"""
    field: str
    message: str
    type: ValidationWarningType

class ValidationSuggestion(BaseModel):
    """Optional improvement, optionally with a value to apply"""
    field: str
    message: str
    type: ValidationSuggestionType
    suggestedValue: Optional[Any] = None

class ValidationResult(BaseModel):
    isValid: bool
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)
    suggestions: List[ValidationSuggestion] = Field(default_factory=list)

class ValidateConfigRequest(BaseModel):
    """Request body for configuration validation"""
    model: ModelConfig
    agent_config: ExtendedAgentConfig = Field(default_factory=ExtendedAgentConfig)
    tool_ids: List[str] = Field(default_factory=list)

# Agno runtime API

class RunFile(BaseModel):
    """File attached to a run, forwarded as a multipart part"""
    field: str = "files"
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

class AgnoRunRequest(BaseModel):
    """Request to run an agent on the Agno runtime"""
    message: str
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    stream: bool = True
    files: List[RunFile] = Field(default_factory=list)

class AgnoRunResponse(BaseModel):
    """Non-streaming run result"""
    model_config = ConfigDict(extra="allow")

    content: Optional[Any] = None
    session_id: Optional[str] = None
    agent_id: Optional[str] = None
    run_id: Optional[str] = None

class SessionRenameRequest(BaseModel):
    name: str
    user_id: Optional[str] = None
