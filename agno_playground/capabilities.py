from types import MappingProxyType
from typing import Mapping, Optional

try:
    from .models import ModelCapabilities
except ImportError:
    import sys
    import os
    sys.path.append(os.path.dirname(__file__))
    from models import ModelCapabilities

# Model used when a feature needs reasoning support
REASONING_MODEL_ID = "gpt-4.1-2025-04-14"

MODEL_CAPABILITIES: Mapping[str, ModelCapabilities] = MappingProxyType({
    "gpt-4o": ModelCapabilities(
        tool_calls=True,
        structured_outputs=True,
        streaming=True,
        reasoning=False,
        multimodal=True,
        max_context=128000,
        supports_json_mode=True
    ),
    "gpt-4.1-2025-04-14": ModelCapabilities(
        tool_calls=True,
        structured_outputs=True,
        streaming=True,
        reasoning=True,
        multimodal=False,
        max_context=200000,
        supports_json_mode=True
    ),
    "gpt-4.1-mini-2025-04-14": ModelCapabilities(
        tool_calls=True,
        structured_outputs=True,
        streaming=True,
        reasoning=False,
        multimodal=False,
        max_context=128000,
        supports_json_mode=True
    ),
    "claude-3-5-sonnet-20241022": ModelCapabilities(
        tool_calls=True,
        structured_outputs=False,
        streaming=True,
        reasoning=False,
        multimodal=True,
        max_context=200000,
        supports_json_mode=False
    ),
})

def get_capabilities(model_id: str) -> Optional[ModelCapabilities]:
    """Look up a model in the capability table, None when unknown"""
    return MODEL_CAPABILITIES.get(model_id)
