"""Protocol for chat-style text completion oracles."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class CompletionOracle(Protocol):
    """
    Minimal capability the pipeline needs from a language model.

    Implementations send one system instruction and one user message and
    return the model's raw text reply. They raise OracleUnavailable or
    OracleTimeout on failure and never interpret the reply.
    """

    def complete(self, system_instruction: str, user_content: str) -> str:
        """Return the raw completion text for one system/user exchange."""
        ...
