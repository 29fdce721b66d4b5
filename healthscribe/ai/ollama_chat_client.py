"""
Ollama Chat Client for HealthScribe
Sends role-tagged chat messages to Ollama's REST API.

This is the production CompletionOracle:
- POST /api/chat with a system and a user message, non-streaming
- Returns the assistant message content verbatim (no interpretation)
- Maps transport failures onto OracleTimeout / OracleUnavailable
- No retries at this layer; callers decide whether to retry the request
"""

import time

import requests

from ..config import PipelineSettings
from ..errors import OracleTimeout, OracleUnavailable
from ..logging_config import debug_log, warning


class OllamaChatClient:
    """
    CompletionOracle backed by a local or remote Ollama service.

    Example:
        client = OllamaChatClient.from_settings(load_settings())
        text = client.complete("Summarize.", "Sprint 12 closed 40 issues.")
    """

    def __init__(
        self,
        api_base: str,
        model_name: str,
        timeout_seconds: float = 300,
        temperature: float = 0.0,
        context_window: int = 4096,
        session: requests.Session | None = None,
    ):
        """
        Initialize the chat client.

        Args:
            api_base: Ollama base URL (e.g. http://localhost:11434)
            model_name: Model identifier sent with every request
            timeout_seconds: Timeout for one chat request
            temperature: Sampling temperature
            context_window: num_ctx option for Ollama
            session: Optional requests.Session (connection pooling, tests)
        """
        self.api_base = api_base.rstrip("/")
        self.model_name = model_name
        self.timeout = timeout_seconds
        self.temperature = temperature
        self.context_window = context_window
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "OllamaChatClient":
        """Build a client from explicit pipeline settings."""
        return cls(
            api_base=settings.api_base,
            model_name=settings.model_name,
            timeout_seconds=settings.oracle_timeout_seconds,
            temperature=settings.temperature,
            context_window=settings.context_window,
        )

    def complete(self, system_instruction: str, user_content: str) -> str:
        """
        Send one system/user exchange and return the raw reply.

        Args:
            system_instruction: Task-specific instruction (system role)
            user_content: Chunk text or metrics summaries (user role)

        Returns:
            str: The assistant message content, unmodified

        Raises:
            OracleTimeout: If the request exceeds the configured timeout
            OracleUnavailable: On connection errors, non-200 status or a
                malformed response body
        """
        # Rough estimate: 1 token ~ 4 chars
        estimated_tokens = (len(system_instruction) + len(user_content)) // 4
        if estimated_tokens > self.context_window:
            warning(
                f"Oracle input (~{estimated_tokens} tokens) exceeds the "
                f"{self.context_window}-token context window and may be truncated."
            )

        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": user_content},
            ],
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_ctx": self.context_window,
            },
        }

        debug_log(f"[OLLAMA CHAT] Model: {self.model_name}")
        debug_log(
            f"[OLLAMA CHAT] System: {len(system_instruction)} chars, "
            f"user: {len(user_content)} chars"
        )

        start_time = time.time()
        try:
            response = self.session.post(
                f"{self.api_base}/api/chat",
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise OracleTimeout(
                f"Oracle call timed out after {self.timeout} seconds"
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise OracleUnavailable(
                f"Cannot connect to Ollama at {self.api_base}. "
                "Is Ollama running? Start with: ollama serve"
            ) from e
        except requests.exceptions.RequestException as e:
            raise OracleUnavailable(f"Oracle request failed: {e}") from e

        if response.status_code != 200:
            raise OracleUnavailable(
                f"Ollama returned status {response.status_code}: {response.text[:200]}"
            )

        try:
            result = response.json()
            content = result["message"]["content"]
        except (ValueError, KeyError, TypeError) as e:
            raise OracleUnavailable(f"Malformed Ollama response: {e}") from e

        if not isinstance(content, str):
            raise OracleUnavailable("Malformed Ollama response: content is not text")

        elapsed = time.time() - start_time
        debug_log(
            f"[OLLAMA CHAT] Complete: {result.get('eval_count', 0)} tokens in {elapsed:.2f}s, "
            f"{len(content)} chars"
        )
        debug_log(f"[OLLAMA CHAT] Response preview: {content[:200]}")

        return content

    def is_available(self) -> bool:
        """Check if Ollama is running and accessible."""
        try:
            response = self.session.get(f"{self.api_base}/api/tags", timeout=5)
        except requests.exceptions.RequestException as e:
            debug_log(f"[OLLAMA] Connection error: {e}")
            return False
        return response.status_code == 200

    def get_available_models(self) -> list[str]:
        """
        List model names installed in Ollama.

        Raises:
            OracleUnavailable: If Ollama cannot be reached
        """
        try:
            response = self.session.get(f"{self.api_base}/api/tags", timeout=10)
        except requests.exceptions.RequestException as e:
            raise OracleUnavailable(f"Cannot reach Ollama at {self.api_base}") from e

        if response.status_code != 200:
            raise OracleUnavailable(f"Ollama returned status {response.status_code}")

        models = [model['name'] for model in response.json().get('models', [])]
        debug_log(f"[OLLAMA] Found {len(models)} models: {models}")
        return models

    def health_check(self) -> dict:
        """
        Get health information about the Ollama connection and models.

        Returns:
            dict: connected flag, api_base, configured model, installed
            models and whether the configured model is installed
        """
        status = {
            'connected': False,
            'api_base': self.api_base,
            'model': self.model_name,
            'available_models': [],
            'model_installed': False,
        }

        try:
            models = self.get_available_models()
        except OracleUnavailable:
            return status

        status['connected'] = True
        status['available_models'] = models
        status['model_installed'] = self.model_name in models
        return status
