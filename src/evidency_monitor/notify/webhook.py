"""POST the run summary as JSON to a webhook URL."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from evidency_monitor.model.run_result import RunResult
from evidency_monitor.utils.json_norm import stable_json_dumps

_logger = logging.getLogger(__name__)

DEFAULT_WEBHOOK_TIMEOUT = 10.0


def build_payload(result: RunResult) -> dict[str, Any]:
    """Summary payload: run totals plus per-project counts, no issue lists."""
    return {
        "event": "evidency.run.finished",
        "timestamp": result.timestamp,
        "tool_version": result.tool_version,
        "summary": result.summary.to_dict(),
        "projects": {
            name: {
                "files_scanned": p.files_scanned,
                "errors": p.errors,
                "warnings": p.warnings,
                "has_changes": p.has_changes,
                **({"error": p.error} if p.error else {}),
            }
            for name, p in result.projects.items()
        },
    }


class WebhookNotifier:
    """Deliver the run summary with a single HTTP POST.

    Delivery failures (transport errors, non-2xx responses) are logged and
    reported as ``False``; they never affect the run status.
    """

    name: str = "webhook"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_WEBHOOK_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client

    def send(self, result: RunResult) -> bool:
        body = stable_json_dumps(build_payload(result), indent=None)
        headers = {"Content-Type": "application/json"}
        try:
            if self._client is not None:
                response = self._client.post(self.url, content=body, headers=headers)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.url, content=body, headers=headers)
        except httpx.HTTPError as exc:
            _logger.warning("Webhook delivery to %s failed: %s", self.url, exc)
            return False

        if not response.is_success:
            _logger.warning(
                "Webhook %s answered %d: %s",
                self.url,
                response.status_code,
                response.text[:200],
            )
            return False
        _logger.info("Webhook notified: %s", self.url)
        return True


def decode_payload(body: bytes | str) -> dict[str, Any]:
    """Parse a payload produced by :class:`WebhookNotifier` (used by receivers and tests)."""
    return json.loads(body)
