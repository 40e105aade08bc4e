"""
External language-model responders.

A responder either returns non-empty answer text or raises ResponderError.
Callers treat every failure the same way and fall back to local answers.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

import ollama
import requests

from ..core import config


class ResponderError(Exception):
    """Any non-success outcome from an external responder."""
    pass


def build_instructions(display_name: str) -> str:
    return " ".join([
        'You are the Memory Vault assistant.',
        'Answer Memory Vault product questions using the provided verified knowledge section.',
        'Answer user-specific questions using the provided memory context.',
        'If a question is not related to Memory Vault, politely refuse and ask for a Memory Vault question.',
        'If the user appears new or has zero memories, provide a short getting-started guide.',
        'If data is missing, state that clearly and avoid guessing.',
        'Be concise, accurate, and practical.',
        f'The user name is: {display_name}.',
        'Keep responses under 140 words unless the user asks for detail.',
    ])


class BaseResponder(ABC):
    """Abstract base class for external responders."""

    provider = "base"

    def __init__(self, model_name: str):
        self.model_name = model_name

    @abstractmethod
    def generate(self, message: str, display_name: str, note_context: str, knowledge_context: str) -> str:
        """
        Ask the external model for an answer.

        Args:
            message: The raw user question
            display_name: Name to address the user by
            note_context: Rendered note summary block
            knowledge_context: Rendered knowledge block

        Returns:
            Non-empty answer text

        Raises:
            ResponderError: on any failure, including an empty answer
        """
        pass

    def get_status(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "model_name": self.model_name,
            "responder_type": self.__class__.__name__,
        }


class OpenAIResponder(BaseResponder):
    """Calls the OpenAI Responses API over HTTP."""

    provider = "openai"

    def __init__(self, model_name: str = config.OPENAI_MODEL, api_key: str = None,
                 base_url: str = config.OPENAI_BASE_URL, timeout: float = config.OPENAI_TIMEOUT_SEC,
                 max_output_tokens: int = config.OPENAI_MAX_OUTPUT_TOKENS, session: requests.Session = None):
        super().__init__(model_name)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_output_tokens = max_output_tokens
        self.session = session or requests.Session()

    def _build_payload(self, message: str, display_name: str, note_context: str, knowledge_context: str) -> Dict[str, Any]:
        def block(role: str, text: str) -> Dict[str, Any]:
            return {"role": role, "content": [{"type": "input_text", "text": text}]}

        return {
            "model": self.model_name,
            "input": [
                block("system", build_instructions(display_name)),
                block("system", f"Memory context:\n{note_context}"),
                block("system", knowledge_context),
                block("user", str(message or "")),
            ],
            "max_output_tokens": self.max_output_tokens,
        }

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> str:
        text = payload.get("output_text")
        if isinstance(text, str) and text.strip():
            return text.strip()

        # The raw API nests text under output[].content[]
        parts: List[str] = []
        for item in payload.get("output") or []:
            for content in (item or {}).get("content") or []:
                if content.get("type") == "output_text" and content.get("text"):
                    parts.append(content["text"])
        return "".join(parts).strip()

    def generate(self, message: str, display_name: str, note_context: str, knowledge_context: str) -> str:
        api_key = self.api_key or config.get_openai_api_key()
        if not api_key:
            raise ResponderError("OPENAI_API_KEY is not configured")

        try:
            response = self.session.post(
                f"{self.base_url}/responses",
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                json=self._build_payload(message, display_name, note_context, knowledge_context),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ResponderError(f"OpenAI request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.ok:
            error = payload.get("error") if isinstance(payload, dict) else None
            detail = error.get("message") if isinstance(error, dict) else None
            raise ResponderError(detail or f"OpenAI HTTP {response.status_code}")

        text = self._extract_text(payload if isinstance(payload, dict) else {})
        if not text:
            raise ResponderError("OpenAI returned an empty response")
        return text


class OllamaResponder(BaseResponder):
    """Local Ollama model."""

    provider = "ollama"

    def __init__(self, model_name: str = config.OLLAMA_MODEL, host: str = config.OLLAMA_HOST, client: ollama.Client = None):
        super().__init__(model_name)
        self.client = client or ollama.Client(host=host)

    def generate(self, message: str, display_name: str, note_context: str, knowledge_context: str) -> str:
        messages = [
            {'role': 'system', 'content': build_instructions(display_name)},
            {'role': 'system', 'content': f"Memory context:\n{note_context}"},
            {'role': 'system', 'content': knowledge_context},
            {'role': 'user', 'content': str(message or "")},
        ]
        try:
            response = self.client.chat(model=self.model_name, messages=messages, options={'temperature': 0.3})
        except ollama.ResponseError as e:
            raise ResponderError(f"Ollama model error: {e}") from e
        except Exception as e:
            # Connection failures surface as httpx/OS errors
            raise ResponderError(f"Ollama unavailable: {e}") from e

        content = (response.get('message') or {}).get('content') or ''
        if not content.strip():
            raise ResponderError("Ollama returned an empty response")
        return content.strip()

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status['available'] = self._check_health()
        return status

    def _check_health(self) -> bool:
        try:
            self.client.list()
            return True
        except Exception:
            return False


class NullResponder(BaseResponder):
    """No external model configured; every call goes to the local fallback."""

    provider = "none"

    def __init__(self):
        super().__init__("local-fallback")

    def generate(self, message: str, display_name: str, note_context: str, knowledge_context: str) -> str:
        raise ResponderError("no external responder configured")


def get_responder() -> BaseResponder:
    """Get configured responder implementation."""
    provider = config.get_assistant_provider()
    if provider == "openai":
        return OpenAIResponder()
    elif provider == "ollama":
        return OllamaResponder()
    else:
        return NullResponder()
