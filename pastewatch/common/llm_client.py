"""
Provider-agnostic LLM client for the Pastewatch evaluator.

Supports Anthropic, OpenAI, and Google Gemini behind one text-generation
call. Every call is a single request with a bounded timeout; retries are
left to the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .config import LLMConfig

logger = logging.getLogger("pastewatch.common.llm_client")

SUPPORTED_PROVIDERS = ("anthropic", "openai", "google")


class LLMClient:
    """Unified text generation client across LLM providers."""

    def __init__(
        self,
        provider: str = "anthropic",
        model: str = "",
        api_key: Optional[str] = None,
    ) -> None:
        self.provider = (provider or "anthropic").lower()
        self.model = model
        self._client = None

        if self.provider == "auto":
            raise ValueError(
                '"auto" provider must be resolved to one of '
                f"{', '.join(SUPPORTED_PROVIDERS)} before creating LLMClient"
            )

        if self.provider not in SUPPORTED_PROVIDERS:
            logger.warning("Unsupported LLM provider: %s", self.provider)
            return

        if not api_key:
            logger.info("%s API key not provided, evaluator unavailable", self.provider)
            return

        try:
            if self.provider == "anthropic":
                import anthropic

                # SDK-level retries off: one request per evaluation
                self._client = anthropic.Anthropic(api_key=api_key, max_retries=0)
            elif self.provider == "openai":
                from openai import OpenAI

                self._client = OpenAI(api_key=api_key, max_retries=0)
            else:
                import google.generativeai as genai

                genai.configure(api_key=api_key)
                self._client = genai
        except ImportError:
            logger.warning("SDK for provider %s not installed", self.provider)
        except Exception as e:
            logger.warning("Failed to initialize %s client: %s", self.provider, e)

    @classmethod
    def from_config(cls, llm_config: "LLMConfig") -> "LLMClient":
        """Build a client for the configured provider."""
        provider = (llm_config.provider or "anthropic").lower()
        keys = {
            "anthropic": (llm_config.anthropic_api_key, llm_config.anthropic_model),
            "openai": (llm_config.openai_api_key, llm_config.openai_model),
            "google": (llm_config.google_api_key, llm_config.google_model),
        }
        api_key, model = keys.get(provider, ("", ""))
        return cls(provider=provider, model=model, api_key=api_key or None)

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 512,
        timeout: float = 20.0,
    ) -> str:
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

        if self.provider == "anthropic":
            kwargs = {}
            if system:
                kwargs["system"] = system
            response = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
                **kwargs,
            )
            return response.content[0].text.strip()

        if self.provider == "openai":
            messages = []
            if system:
                messages.append({"role": "system", "content": system})
            messages.append({"role": "user", "content": prompt})
            response = self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=messages,
                timeout=timeout,
            )
            return (response.choices[0].message.content or "").strip()

        kwargs = {"model_name": self.model}
        if system:
            kwargs["system_instruction"] = system
        model = self._client.GenerativeModel(**kwargs)
        response = model.generate_content(
            prompt,
            generation_config={"max_output_tokens": max_tokens},
            request_options={"timeout": timeout},
        )
        return response.text.strip()
