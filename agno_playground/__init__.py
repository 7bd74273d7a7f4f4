# Agno Playground core
__version__ = "1.0.0"

from .models import (
    RunEvent,
    RunResponse,
    ModelConfig,
    ExtendedAgentConfig,
    ModelCapabilities,
    ValidationError,
    ValidationWarning,
    ValidationSuggestion,
    ValidationResult,
    AgnoRunRequest,
    AgnoRunResponse,
    RunFile
)

from .capabilities import MODEL_CAPABILITIES
from .stream_parser import StreamFrameParser, consume, flush
from .validation import AgentConfigValidator, validate_config
from .agno_client import AgnoAPIClient, AgnoAPIError

__all__ = [
    "RunEvent",
    "RunResponse",
    "ModelConfig",
    "ExtendedAgentConfig",
    "ModelCapabilities",
    "ValidationError",
    "ValidationWarning",
    "ValidationSuggestion",
    "ValidationResult",
    "AgnoRunRequest",
    "AgnoRunResponse",
    "RunFile",
    "MODEL_CAPABILITIES",
    "StreamFrameParser",
    "consume",
    "flush",
    "AgentConfigValidator",
    "validate_config",
    "AgnoAPIClient",
    "AgnoAPIError"
]
