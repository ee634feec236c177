"""
Canned tutor replies

Deterministic, keyword-matched responses used when the chat model is not
configured or fails. Same input always yields the same text.
"""
from typing import Sequence

# Checked in order; first keyword hit wins
_KEYWORD_REPLIES = [
    (("hello", "hi"), "Hello {user}! Great to see you! What would you like to learn about today?"),
    (("math", "mathematics"),
     "Mathematics is a fascinating subject, {user}! What specific topic are you working on? "
     "I'd be happy to help you understand it better."),
    (("science",),
     "Science is all about understanding the world around us, {user}! Which branch of science are you studying?"),
    (("thank",),
     "You're very welcome, {user}! I'm here to help you succeed. Is there anything else you'd like to explore?"),
    (("help",),
     "Of course, {user}! I'm here to help you. Could you tell me more specifically what you're struggling with?"),
]

_DEFAULT_REPLY = (
    "That's an interesting question, {user}! I'd be happy to help you understand this better. "
    "Could you provide a bit more context so I can give you the most helpful response?"
)

_OPENING_LINE = "Hello {user}! I'm {tutor}, your AI tutor. How can I help you today?"


def canned_reply(history: Sequence, user_name: str, tutor_name: str) -> str:
    """
    Pick a canned reply for the conversation so far.

    An empty history, or one whose last entry came from the tutor, gets the
    opening line. Otherwise the last user message is matched by substring.
    """
    last = history[-1] if history else None
    if last is None or last.sender == "ai":
        return _OPENING_LINE.format(user=user_name, tutor=tutor_name)

    text = (last.content or "").lower()
    for keywords, template in _KEYWORD_REPLIES:
        if any(k in text for k in keywords):
            return template.format(user=user_name)
    return _DEFAULT_REPLY.format(user=user_name)
