# app/api/v1/routers/webhooks.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 🪝 ReelShare · Transcoder Webhook                                        ║
# ║                                                                          ║
# ║  - POST /webhooks/transcoder → persist playback id + processing state    ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║  - `Mux-Signature: t=<ts>,v1=<hmac>` over "<ts>.<raw body>".             ║
# ║  - Secrets come from the env var named by TRANSCODER_WEBHOOK_SECRET_ENV. ║
# ║  - Unknown assets and event types are acknowledged and ignored.          ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.http_utils import json_no_store, verify_webhook_signature
from app.core.config import settings
from app.core.dependencies import get_video_lifecycle
from app.core.exceptions import ValidationFailed
from app.services.transcoding import parse_event
from app.services.video_lifecycle import VideoLifecycle

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])

log = logging.getLogger(__name__)


@router.post("/transcoder", summary="Transcoder asset events")
async def transcoder_webhook(
    request: Request,
    lifecycle: VideoLifecycle = Depends(get_video_lifecycle),
):
    if not await verify_webhook_signature(request, secret_env=settings.TRANSCODER_WEBHOOK_SECRET_ENV):
        log.warning("Transcoder webhook rejected: bad signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature")

    try:
        payload = json.loads(await request.body() or b"{}")
    except ValueError:
        raise ValidationFailed("Body must be JSON")
    if not isinstance(payload, dict):
        raise ValidationFailed("Body must be a JSON object")

    event = parse_event(payload)
    updated = await lifecycle.apply_transcoder_event(event)
    return json_no_store({
        "ok": True,
        "type": event.type,
        "video_id": updated.id if updated else None,
        "status": updated.status.value if updated else None,
    })
