"""
HealthScribe AI Module
Talks to the text-completion oracle that performs extraction and synthesis.

The pipeline depends only on the CompletionOracle protocol
(complete(system_instruction, user_content) -> str), so tests can inject a
deterministic stub. OllamaChatClient is the production implementation.
"""

from .oracle import CompletionOracle
from .ollama_chat_client import OllamaChatClient

__all__ = ['CompletionOracle', 'OllamaChatClient']
