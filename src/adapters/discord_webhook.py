"""Discord webhook notification adapter.

Delivery is fire-and-forget: a failed POST is logged and dropped, never
retried and never raised to the pipeline.
"""

from __future__ import annotations

import http.client
import json
import logging
import threading
import urllib.error
import urllib.request

from core.config import DeliveryConfig
from core.models import WebhookPayload

LOGGER = logging.getLogger(__name__)

CONTENT_TYPE = "application/json; charset=utf-8"

REPOST_CODES = (307, 308)


class RepostRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Follow 307/308 after a POST by re-sending the same body.

    301/302/303 keep urllib's behavior (follow as GET without a body).
    """

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        if code in REPOST_CODES and req.get_method() == "POST":
            return urllib.request.Request(
                newurl,
                data=req.data,
                headers=req.headers,
                origin_req_host=req.origin_req_host,
                unverifiable=True,
                method="POST",
            )
        return super().redirect_request(req, fp, code, msg, headers, newurl)


_OPENER = urllib.request.build_opener(RepostRedirectHandler)


class DiscordWebhookNotifier:
    """Notifier adapter that POSTs embed payloads to a Discord webhook."""

    def __init__(self, config: DeliveryConfig) -> None:
        self._config = config

    def _build_request(self, payload: WebhookPayload, webhook_url: str) -> urllib.request.Request:
        data = json.dumps(payload.to_dict(), ensure_ascii=False).encode("utf-8")
        request = urllib.request.Request(webhook_url, data=data, method="POST")
        request.add_header("Content-Type", CONTENT_TYPE)
        request.add_header("User-Agent", self._config.user_agent)
        return request

    def _post(self, request: urllib.request.Request) -> None:
        try:
            # The socket timeout bounds the connect and each read; the body is
            # never read.
            with _OPENER.open(request, timeout=self._config.connect_timeout):
                pass
        except urllib.error.HTTPError as e:
            LOGGER.warning("Webhook rejected notification: HTTP %s %s", e.code, e.reason)
        except urllib.error.URLError as e:
            LOGGER.warning("Webhook delivery failed: %s", e.reason)
        except (OSError, ValueError, http.client.HTTPException) as e:
            # Timeouts and resets surface as OSError, malformed URLs as
            # ValueError, garbled responses as HTTPException.
            LOGGER.warning("Webhook delivery failed: %s", e)

    def send(self, payload: WebhookPayload, webhook_url: str) -> None:
        """Send the payload; the response status and body are ignored.

        The POST runs on a daemon worker so ``timeout`` is a hard deadline for
        the whole exchange; a request still running past it is abandoned.
        """

        try:
            request = self._build_request(payload, webhook_url)
        except ValueError as e:
            LOGGER.warning("Webhook delivery failed: %s", e)
            return

        worker = threading.Thread(target=self._post, args=(request,), name="webhook-delivery", daemon=True)
        worker.start()
        worker.join(self._config.timeout)
        if worker.is_alive():
            LOGGER.warning("Webhook delivery abandoned after %ss", self._config.timeout)
