# -*- coding: utf-8 -*-
from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

# -----------------------------
# Helpers
# -----------------------------
def _mask_webhook(url: Optional[str]) -> str:
    """Mask webhook để tránh lộ full URL trong log."""
    if not url:
        return ""
    if len(url) <= 14:
        return "***"
    return f"{url[:10]}...{url[-4:]}"

def _post_json(url: str, payload: Dict[str, Any], timeout: Optional[float] = None) -> Tuple[bool, str, str]:
    """
    POST JSON tới webhook.
    Trả về (ok, status_code_str, resp_text)
    """
    timeout = timeout or getattr(settings, "AUTO_ATTENDANCE_ALERT_TIMEOUT", 8)
    try:
        r = requests.post(url, json=payload, timeout=timeout)
    except requests.RequestException as ex:
        return False, "EXC", str(ex)
    return r.status_code < 300, str(r.status_code), (r.text or "")[:2000]


# -----------------------------
# Chat webhook (Lark/Feishu text format)
# -----------------------------
def send_webhook_alert(*, text: str, webhook_url: Optional[str] = None, timeout: Optional[float] = None) -> bool:
    """
    Gửi text vào chat webhook. Không có URL -> bỏ qua, trả về False.
    """
    url = webhook_url or getattr(settings, "AUTO_ATTENDANCE_ALERT_WEBHOOK_URL", None)
    if not url:
        logger.warning("[notify.webhook] AUTO_ATTENDANCE_ALERT_WEBHOOK_URL not set; skip.")
        return False

    payload = {
        "msg_type": "text",
        "content": {"text": text.strip()},
    }
    ok, code, resp_text = _post_json(url, payload, timeout=timeout)
    if ok:
        logger.info("[notify.webhook] sent to %s (%s)", _mask_webhook(url), code)
    else:
        logger.warning("[notify.webhook] send FAILED to %s (%s): %s", _mask_webhook(url), code, resp_text[:500])
    return ok
