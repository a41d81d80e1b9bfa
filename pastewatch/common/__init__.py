"""
Pastewatch Common Module

Shared configuration, schemas and LLM access.
"""

from .config import PastewatchConfig, load_config
from .llm_client import LLMClient
from .llm_utils import parse_llm_json

__all__ = [
    "PastewatchConfig",
    "load_config",
    "LLMClient",
    "parse_llm_json",
]
