"""
OpenAI Chat Completions Client

Generates the tutor's replies. Never raises: when the key is missing or the
call fails, the reply comes from the canned keyword responder and the
result is flagged as degraded.
"""
import logging
from typing import Optional, Sequence

import httpx

from ...config import Settings, settings
from .base import ProviderClient, TextResult
from .canned_replies import canned_reply

logger = logging.getLogger("uvicorn.error")

EMPTY_COMPLETION_REPLY = "I apologize, but I am unable to respond at the moment."


class OpenAIChatClient(ProviderClient):
    """Tutor reply generation via OpenAI chat completions"""

    def __init__(self, cfg: Optional[Settings] = None):
        cfg = cfg or settings
        self.api_key = cfg.openai_api_key
        self.model = cfg.chat_model
        self.api_url = f"{cfg.openai_api_base}/chat/completions"

    @property
    def name(self) -> str:
        return "openai"

    def is_available(self) -> bool:
        """Check if API key is configured"""
        return bool(self.api_key)

    async def generate_text(
        self,
        history: Sequence,
        user_label: str,
        tutor_label: str,
        language: str = "English",
        subject: Optional[str] = None,
    ) -> TextResult:
        """
        Generate the tutor's next message

        Parameters:
            history: Ordered messages (objects with .sender and .content)
            user_label: Learner's display name
            tutor_label: Tutor persona name
            language: Language the tutor must answer in
            subject: Optional subject line for the session

        Returns:
            TextResult with source_provider "openai", or "canned" (degraded)
        """
        if not self.is_available():
            return self._canned(history, user_label, tutor_label)

        try:
            payload = {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": self._build_system_prompt(user_label, tutor_label, language, subject)},
                    *[
                        {"role": "user" if m.sender == "user" else "assistant", "content": m.content}
                        for m in history
                    ],
                ],
                "max_tokens": 500,
                "temperature": 0.7,
                "presence_penalty": 0.1,
                "frequency_penalty": 0.1,
            }
            headers = {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            }

            logger.info("[openai] chat completion: model=%s turns=%d", self.model, len(history))
            async with httpx.AsyncClient(timeout=30) as client:
                resp = await client.post(self.api_url, headers=headers, json=payload)
                resp.raise_for_status()
                result = resp.json()

            choices = result.get("choices") or [{}]
            content = ((choices[0].get("message") or {}).get("content") or "").strip()
            return TextResult(text=content or EMPTY_COMPLETION_REPLY, source_provider=self.name)

        except Exception as e:
            logger.warning("[openai] chat completion failed, using canned reply: %r", e)
            return self._canned(history, user_label, tutor_label)

    def _canned(self, history: Sequence, user_label: str, tutor_label: str) -> TextResult:
        return TextResult(
            text=canned_reply(history, user_label, tutor_label),
            source_provider="canned",
            degraded=True,
        )

    def _build_system_prompt(
        self, user_name: str, tutor_name: str, language: str, subject: Optional[str]
    ) -> str:
        """Build the tutor persona prompt"""
        subject_line = f"Current subject: {subject}" if subject else ""
        return f"""You are {tutor_name}, a knowledgeable and patient AI tutor. You are having a tutoring session with {user_name}.

Key Guidelines:
1. Always address {user_name} by their name
2. Respond in {language} language
3. Be encouraging, supportive, and patient
4. Provide clear, step-by-step explanations
5. Ask follow-up questions to ensure understanding
6. Use examples and analogies when helpful
7. If {user_name} uploads documents, reference them in your explanations
8. Keep responses concise but comprehensive
9. Maintain a conversational, friendly tone

{subject_line}

Remember: You are here to help {user_name} learn and understand concepts effectively."""
