"""
Prompt assembly for reply generation.
"""

from typing import Iterable, Protocol

from gemini_chat.domain.chat import Sender


class HistoryTurn(Protocol):
    sender: str
    content: str


def _label(sender: str) -> str:
    return "User" if sender == Sender.USER.value else "Assistant"


def build_prompt(history: Iterable[HistoryTurn], user_text: str) -> str:
    """
    Concatenate prior turns (oldest first) and the new user utterance.

    >>> build_prompt([], "Hello")
    'User: Hello\\n\\nAssistant:'
    """
    lines = [f"{_label(turn.sender)}: {turn.content}" for turn in history]
    if not lines:
        return f"User: {user_text}\n\nAssistant:"

    conversation = "\n".join(lines)
    return f"Previous conversation:\n{conversation}\n\nUser: {user_text}\n\nAssistant:"
