from __future__ import annotations

"""
🎬 Transcoding collaborator
===========================

Async client for the hosted transcoder (Mux-compatible REST API) plus parsing
of its webhook events.

- `create_asset(source_url)` submits a stored original for transcoding.
- `delete_asset(asset_id)` removes the streaming rendition; a missing asset
  counts as deleted.
- `parse_event(payload)` maps a webhook body to the asset id, playback id and
  the processing state to persist.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.schemas.enums import VideoStatus

logger = logging.getLogger(__name__)


class TranscoderError(RuntimeError):
    """Raised when the transcoder API rejects or fails a request."""


@dataclass(frozen=True)
class TranscoderAsset:
    asset_id: str
    playback_id: Optional[str]
    status: str


@dataclass(frozen=True)
class TranscoderEvent:
    type: str
    asset_id: Optional[str]
    playback_id: Optional[str]
    status: Optional[VideoStatus]
    duration: Optional[float] = None


class TranscoderClient:
    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        token_id: Optional[str] = None,
        token_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        secret = settings.TRANSCODER_TOKEN_SECRET
        self._base_url = (base_url or settings.TRANSCODER_BASE_URL).rstrip("/")
        self._auth = (
            token_id or settings.TRANSCODER_TOKEN_ID or "",
            token_secret or (secret.get_secret_value() if secret else ""),
        )
        self._timeout = timeout or settings.TRANSCODER_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            auth=self._auth,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def create_asset(self, source_url: str) -> TranscoderAsset:
        body = {"input": [{"url": source_url}], "playback_policy": ["public"]}
        try:
            async with self._client() as client:
                resp = await client.post("/video/v1/assets", json=body)
        except httpx.HTTPError as e:
            raise TranscoderError(f"create_asset network error: {e}") from e
        if resp.status_code not in (200, 201):
            raise TranscoderError(f"create_asset failed with HTTP {resp.status_code}")

        data = resp.json().get("data") or {}
        playback_ids = data.get("playback_ids") or []
        asset = TranscoderAsset(
            asset_id=str(data.get("id") or ""),
            playback_id=(playback_ids[0] or {}).get("id") if playback_ids else None,
            status=str(data.get("status") or "preparing"),
        )
        if not asset.asset_id:
            raise TranscoderError("create_asset returned no asset id")
        logger.info("Transcoder asset created asset=%s", asset.asset_id)
        return asset

    async def delete_asset(self, asset_id: str) -> None:
        try:
            async with self._client() as client:
                resp = await client.delete(f"/video/v1/assets/{asset_id}")
        except httpx.HTTPError as e:
            raise TranscoderError(f"delete_asset network error: {e}") from e
        if resp.status_code == 404:
            logger.info("Transcoder asset already gone asset=%s", asset_id)
            return
        if resp.status_code >= 300:
            raise TranscoderError(f"delete_asset failed with HTTP {resp.status_code}")


def _event_status(event_type: str) -> Optional[VideoStatus]:
    if event_type == "video.asset.ready":
        return VideoStatus.READY
    if event_type == "video.asset.errored":
        return VideoStatus.FAILED
    if event_type.startswith("video.asset."):
        return VideoStatus.PROCESSING
    return None


def parse_event(payload: Dict[str, Any]) -> TranscoderEvent:
    event_type = str(payload.get("type") or "")
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    obj = payload.get("object") if isinstance(payload.get("object"), dict) else {}

    asset_id = data.get("id") or obj.get("id")
    playback_ids = data.get("playback_ids") or []
    playback_id = None
    if playback_ids and isinstance(playback_ids[0], dict):
        playback_id = playback_ids[0].get("id")
    duration = data.get("duration")

    return TranscoderEvent(
        type=event_type,
        asset_id=str(asset_id) if asset_id else None,
        playback_id=str(playback_id) if playback_id else None,
        status=_event_status(event_type),
        duration=float(duration) if isinstance(duration, (int, float)) else None,
    )


def thumbnail_time(duration: Optional[float]) -> float:
    """Frame to grab for the poster: 25% into short clips, else 5s."""
    if not duration or duration <= 0:
        return 1.0
    if duration <= 10:
        return round(max(0.5, min(2.5, duration * 0.25)), 2)
    return 5.0


def thumbnail_url(playback_id: str, duration: Optional[float] = None) -> str:
    base = settings.TRANSCODER_THUMBNAIL_BASE.rstrip("/")
    return f"{base}/{playback_id}/thumbnail.jpg?time={thumbnail_time(duration):g}"


__all__ = [
    "TranscoderClient",
    "TranscoderError",
    "TranscoderAsset",
    "TranscoderEvent",
    "parse_event",
    "thumbnail_url",
    "thumbnail_time",
]
