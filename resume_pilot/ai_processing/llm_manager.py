"""
LLM Manager - Abstraction layer for multiple LLM backends.

This module provides a unified interface for the OpenRouter API, the Google
Gemini API and local Ollama models, allowing seamless switching between
different LLM providers.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
from dataclasses import dataclass
import aiohttp
import requests

from ..config import get_llm_config, LLMConfig
from ..utils import get_logger, strip_code_fences

logger = get_logger(__name__)

JSON_OBJECT_PATTERN = re.compile(r'\{.*\}', re.DOTALL)

@dataclass
class LLMResponse:
    """Standardized response from LLM providers."""
    success: bool
    content: str = ""
    model: str = ""
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

def build_format_instructions(response_format: Dict[str, str]) -> str:
    """Describe the expected JSON object field by field."""
    instructions = "Respond with a single JSON object containing the following fields:\n"
    for field, description in response_format.items():
        instructions += f"- {field}: {description}\n"
    instructions += "Return only the JSON object, without commentary or code fences."
    return instructions

def parse_json_object(content: str) -> Dict[str, Any]:
    """
    Extract the JSON object from a model reply.

    Raises ValueError when the reply holds no parseable object.
    """
    text = strip_code_fences(content or "")
    json_match = JSON_OBJECT_PATTERN.search(text)
    if not json_match:
        raise ValueError("Response did not contain a JSON object")
    data = json.loads(json_match.group())
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data

class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name = "provider"

    @abstractmethod
    async def generate_text(self, prompt: str, system_prompt: str = "", json_mode: bool = False, **kwargs) -> LLMResponse:
        """Generate text response."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the model name being used."""
        pass

    async def generate_structured_response(self, prompt: str, system_prompt: str = "", response_format: Dict[str, str] = None, **kwargs) -> LLMResponse:
        """Generate a JSON object response; unparseable replies are failures."""
        full_prompt = f"{prompt}\n\n{build_format_instructions(response_format)}" if response_format else prompt

        response = await self.generate_text(full_prompt, system_prompt, json_mode=True, **kwargs)
        if not response.success:
            return response

        try:
            response.data = parse_json_object(response.content)
        except (ValueError, json.JSONDecodeError) as e:
            logger.warning(f"Could not parse structured response from {self.name} as JSON: {e}")
            response.success = False
            response.error = f"Malformed JSON response from {self.name}: {e}"

        return response

class OpenRouterProvider(LLMProvider):
    """OpenRouter API provider for various LLM models."""

    name = "openrouter"

    def __init__(self, config: LLMConfig):
        self.config = config
        self.base_url = "https://openrouter.ai/api/v1"
        self.headers = {
            "Authorization": f"Bearer {config.openrouter_api_key}",
            "HTTP-Referer": "http://localhost:8501",
            "X-Title": "ResumePilot",
            "Content-Type": "application/json"
        }

    async def generate_text(self, prompt: str, system_prompt: str = "", json_mode: bool = False, **kwargs) -> LLMResponse:
        """Generate text response using OpenRouter API."""
        if not self.config.openrouter_api_key:
            return LLMResponse(
                success=False,
                error="OpenRouter API key not configured"
            )

        try:
            messages = []
            if system_prompt:
                messages.append({"role": "system", "content": system_prompt})
            messages.append({"role": "user", "content": prompt})

            payload = {
                "model": self.config.default_model,
                "messages": messages,
                "temperature": kwargs.get("temperature", self.config.temperature),
                "max_tokens": kwargs.get("max_tokens", self.config.max_tokens)
            }
            if json_mode:
                payload["response_format"] = {"type": "json_object"}

            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.base_url}/chat/completions",
                    headers=self.headers,
                    json=payload
                ) as response:
                    if response.status == 200:
                        data = await response.json()
                        content = data["choices"][0]["message"]["content"]

                        return LLMResponse(
                            success=True,
                            content=content,
                            model=data.get("model", self.config.default_model),
                            usage=data.get("usage", {}),
                            finish_reason=data["choices"][0].get("finish_reason")
                        )
                    else:
                        error_text = await response.text()
                        return LLMResponse(
                            success=False,
                            error=f"OpenRouter API error {response.status}: {error_text}"
                        )

        except Exception as e:
            logger.error(f"Error calling OpenRouter API: {e}")
            return LLMResponse(
                success=False,
                error=f"OpenRouter API error: {str(e)}"
            )

    def is_available(self) -> bool:
        """Check if OpenRouter is available."""
        return bool(self.config.openrouter_api_key)

    def get_model_name(self) -> str:
        """Get the model name being used."""
        return self.config.default_model

class GeminiProvider(LLMProvider):
    """Google Gemini API provider (Generative Language REST endpoint)."""

    name = "gemini"

    def __init__(self, config: LLMConfig):
        self.config = config
        self.base_url = "https://generativelanguage.googleapis.com/v1beta"

    async def generate_text(self, prompt: str, system_prompt: str = "", json_mode: bool = False, **kwargs) -> LLMResponse:
        """Generate text response using the Gemini API."""
        if not self.config.gemini_api_key:
            return LLMResponse(
                success=False,
                error="Gemini API key not configured"
            )

        try:
            generation_config = {
                "temperature": kwargs.get("temperature", self.config.temperature),
                "maxOutputTokens": kwargs.get("max_tokens", self.config.max_tokens)
            }
            if json_mode:
                generation_config["responseMimeType"] = "application/json"

            payload = {
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": generation_config
            }
            if system_prompt:
                payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

            url = f"{self.base_url}/models/{self.config.gemini_model}:generateContent"
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    url,
                    params={"key": self.config.gemini_api_key},
                    json=payload
                ) as response:
                    if response.status == 200:
                        data = await response.json()
                        candidates = data.get("candidates") or []
                        if not candidates:
                            return LLMResponse(
                                success=False,
                                error=f"Gemini returned no candidates: {data.get('promptFeedback', {})}"
                            )

                        parts = candidates[0].get("content", {}).get("parts", [])
                        usage = data.get("usageMetadata", {})
                        return LLMResponse(
                            success=True,
                            content="".join(part.get("text", "") for part in parts),
                            model=self.config.gemini_model,
                            usage={
                                "prompt_tokens": usage.get("promptTokenCount", 0),
                                "completion_tokens": usage.get("candidatesTokenCount", 0)
                            },
                            finish_reason=candidates[0].get("finishReason")
                        )
                    else:
                        error_text = await response.text()
                        return LLMResponse(
                            success=False,
                            error=f"Gemini API error {response.status}: {error_text}"
                        )

        except Exception as e:
            logger.error(f"Error calling Gemini API: {e}")
            return LLMResponse(
                success=False,
                error=f"Gemini API error: {str(e)}"
            )

    def is_available(self) -> bool:
        """Check if Gemini is available."""
        return bool(self.config.gemini_api_key)

    def get_model_name(self) -> str:
        """Get the model name being used."""
        return self.config.gemini_model

class OllamaProvider(LLMProvider):
    """Local Ollama provider for running models locally."""

    name = "ollama"

    def __init__(self, config: LLMConfig):
        self.config = config
        self.base_url = config.ollama_base_url

    async def generate_text(self, prompt: str, system_prompt: str = "", json_mode: bool = False, **kwargs) -> LLMResponse:
        """Generate text response using Ollama."""
        if not self.is_available():
            return LLMResponse(
                success=False,
                error="Ollama is not available or configured"
            )

        try:
            payload = {
                "model": self.config.local_llm_model,
                "prompt": f"{system_prompt}\n\n{prompt}" if system_prompt else prompt,
                "stream": False,
                "options": {
                    "temperature": kwargs.get("temperature", self.config.temperature),
                    "num_predict": kwargs.get("max_tokens", self.config.max_tokens)
                }
            }
            if json_mode:
                payload["format"] = "json"

            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.base_url}/api/generate",
                    json=payload
                ) as response:
                    if response.status == 200:
                        data = await response.json()

                        return LLMResponse(
                            success=True,
                            content=data.get("response", ""),
                            model=self.config.local_llm_model,
                            finish_reason="stop" if data.get("done") else "length"
                        )
                    else:
                        error_text = await response.text()
                        return LLMResponse(
                            success=False,
                            error=f"Ollama API error {response.status}: {error_text}"
                        )

        except Exception as e:
            logger.error(f"Error calling Ollama API: {e}")
            return LLMResponse(
                success=False,
                error=f"Ollama API error: {str(e)}"
            )

    def is_available(self) -> bool:
        """Check if Ollama is reachable."""
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=5)
            return response.status_code == 200
        except requests.RequestException:
            return False

    def get_model_name(self) -> str:
        """Get the model name being used."""
        return self.config.local_llm_model

class LLMManager:
    """Main LLM manager that coordinates different providers."""

    # Preference order when more than one provider is configured
    PROVIDER_ORDER = ("openrouter", "gemini", "ollama")

    def __init__(self, config: Optional[LLMConfig] = None):
        self.config = config or get_llm_config()
        self.providers: Dict[str, LLMProvider] = {}
        self._initialize_providers()

    def _initialize_providers(self):
        """Initialize configured providers."""
        if self.config.openrouter_api_key:
            self.providers["openrouter"] = OpenRouterProvider(self.config)

        if self.config.gemini_api_key:
            self.providers["gemini"] = GeminiProvider(self.config)

        if self.config.use_local_llm:
            self.providers["ollama"] = OllamaProvider(self.config)

    def get_available_providers(self) -> List[str]:
        """Get list of available providers."""
        return [name for name, provider in self.providers.items() if provider.is_available()]

    def get_primary_provider(self) -> Optional[LLMProvider]:
        """Get the first available provider in preference order."""
        for name in self.PROVIDER_ORDER:
            provider = self.providers.get(name)
            if provider and provider.is_available():
                return provider
        return None

    async def generate_text(self, prompt: str, system_prompt: str = "", **kwargs) -> LLMResponse:
        """Generate text using the primary provider."""
        provider = self.get_primary_provider()

        if not provider:
            return LLMResponse(
                success=False,
                error="No LLM providers available"
            )

        return await provider.generate_text(prompt, system_prompt, **kwargs)

    async def generate_structured_response(self, prompt: str, system_prompt: str = "", response_format: Dict[str, str] = None, **kwargs) -> LLMResponse:
        """Generate structured response using the primary provider."""
        provider = self.get_primary_provider()

        if not provider:
            return LLMResponse(
                success=False,
                error="No LLM providers available"
            )

        return await provider.generate_structured_response(prompt, system_prompt, response_format, **kwargs)

    async def test_providers(self, prompt: str = "Reply with the single word: ready") -> Dict[str, Dict[str, Any]]:
        """Send a short prompt to every available provider."""
        results = {}
        for name, provider in self.providers.items():
            if not provider.is_available():
                results[name] = {"success": False, "error": "not available"}
                continue
            response = await provider.generate_text(prompt, max_tokens=20)
            results[name] = {
                "success": response.success,
                "model": response.model or provider.get_model_name(),
                "error": response.error
            }
        return results

    def get_provider_info(self) -> Dict[str, Dict[str, Any]]:
        """Get information about configured providers."""
        info = {}
        primary_provider = self.get_primary_provider()

        for name, provider in self.providers.items():
            info[name] = {
                "name": name,
                "available": provider.is_available(),
                "model": provider.get_model_name(),
                "is_primary": provider == primary_provider
            }

        return info

# Global LLM manager instance
_llm_manager = None

def get_llm_manager() -> LLMManager:
    """Get the global LLM manager instance."""
    global _llm_manager
    if _llm_manager is None:
        _llm_manager = LLMManager()
    return _llm_manager
