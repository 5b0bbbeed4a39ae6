"""Conversation-to-payload adapter for chat completion.

Architectural role:
    Bridges the engine's `ConversationTurn` sequence to the chat-completion wire
    payload consumed by `gateway.llm.client`.

Model call flow:
    turns -> history cap -> system instruction + turns -> payload.

Token behavior:
    No token counting. History length is capped by turn count only
    (`GatewayConfig.max_history_turns`); `max_tokens` bounds the reply.

Determinism:
    Payload construction is deterministic for fixed inputs and configuration.
"""

from gateway.core.gateway_types import ConversationTurn
from gateway.llm.provider_config import CHAT_MAX_TOKENS, CHAT_TEMPERATURE, SYSTEM_MESSAGE


def cap_history(turns, max_turns: int) -> list[ConversationTurn]:
    """Keep the most recent `max_turns` turns, preserving order."""
    turns = list(turns)
    if max_turns <= 0 or len(turns) <= max_turns:
        return turns
    return turns[-max_turns:]


def build_chat_payload(turns) -> dict:
    """Wrap conversation turns with the fixed system instruction.

    Args:
        turns: Ordered `ConversationTurn` items, already capped.

    Returns:
        Chat-completion payload with `messages`, `temperature`, `max_tokens`.

    Parameter semantics:
        - `temperature=0.7`: conversational variety.
        - `max_tokens=800`: reply length ceiling.
    """
    messages = [{"role": "system", "content": SYSTEM_MESSAGE}]
    messages.extend(turn.as_message() for turn in turns)

    return {
        "messages": messages,
        "temperature": CHAT_TEMPERATURE,
        "max_tokens": CHAT_MAX_TOKENS,
    }
