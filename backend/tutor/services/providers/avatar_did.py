"""
D-ID Talks Client

Second avatar tier. A "talk" is submitted with a text script and a
presenter image; the job's top-level ``status`` becomes ``done`` (with
``result_url``) or ``error``.
"""
import base64
import logging
from typing import Optional

import httpx

from ...config import Settings, settings
from .base import (
    AvatarRequest,
    JobFailed,
    JobPending,
    JobStatus,
    JobSucceeded,
    ProviderError,
    ProviderNotConfigured,
    VideoJobClient,
)

logger = logging.getLogger("uvicorn.error")


class DIDVideoClient(VideoJobClient):
    """D-ID /talks API"""

    def __init__(self, cfg: Optional[Settings] = None):
        cfg = cfg or settings
        self.api_key = cfg.did_api_key
        self.api_base = cfg.did_api_base
        self.voice_id = cfg.did_voice_id
        self.source_url = cfg.did_source_url

    @property
    def name(self) -> str:
        return "did"

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _auth_header(self) -> str:
        # D-ID uses Basic auth with the key as username and an empty password
        token = base64.b64encode(f"{self.api_key}:".encode("utf-8")).decode("ascii")
        return f"Basic {token}"

    async def submit(self, text: str, avatar: AvatarRequest) -> str:
        if not self.is_available():
            raise ProviderNotConfigured(self.name, "DID_API_KEY")

        payload = {
            "script": {
                "type": "text",
                "input": text,
                "provider": {"type": "microsoft", "voice_id": avatar.voice_id or self.voice_id},
            },
            "config": {"fluent": True, "pad_audio": 0.0},
            "source_url": self.source_url,
        }
        headers = {"Authorization": self._auth_header(), "Content-Type": "application/json"}
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.post(f"{self.api_base}/talks", headers=headers, json=payload)
            resp.raise_for_status()
            body = resp.json()

        talk_id = body.get("id")
        if not talk_id:
            raise ProviderError(self.name, "D-ID API did not return a talk ID")
        logger.info("[did] talk submitted: %s", talk_id)
        return talk_id

    async def poll_status(self, job_id: str) -> JobStatus:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(f"{self.api_base}/talks/{job_id}", headers={"Authorization": self._auth_header()})
            resp.raise_for_status()
            body = resp.json()

        status = body.get("status")
        if status == "done":
            return JobSucceeded(url=body.get("result_url", ""), provider=self.name)
        if status == "error":
            return JobFailed(reason=(body.get("error") or {}).get("message") or "D-ID video generation failed")
        return JobPending()
