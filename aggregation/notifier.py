"""
aggregation/notifier.py

Best-effort webhook notification of aggregation outcomes.

The message is always echoed to standard output. When a webhook URL is
configured it is also POSTed as a URL-encoded ``source=<message>`` form
body, through the injected session or a one-shot ``requests.post``. The
response status is logged but never checked; transport errors are logged
and swallowed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import requests

from app.config import AggregationSettings

logger = logging.getLogger(__name__)


class AggregationNotifier:
    def __init__(
        self,
        hook_url: str | None,
        *,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
        echo: Callable[[str], None] = print,
    ) -> None:
        self._hook_url = (hook_url or "").strip() or None
        self._timeout_seconds = timeout_seconds
        self._session = session
        self._echo = echo

    @classmethod
    def from_settings(
        cls,
        settings: AggregationSettings,
        *,
        session: requests.Session | None = None,
        echo: Callable[[str], None] = print,
    ) -> AggregationNotifier:
        return cls(
            settings.webhook_url,
            timeout_seconds=settings.webhook_timeout_seconds,
            session=session,
            echo=echo,
        )

    @property
    def enabled(self) -> bool:
        return self._hook_url is not None

    def notify_success(self, from_label: str, to_label: str) -> None:
        self._notify(f"Aggregated event histories for {from_label}~{to_label}")

    def notify_failure(
        self,
        from_label: str,
        to_label: str,
        error: BaseException,
        traceback_text: str | None = None,
    ) -> None:
        lines = [
            f"Failed to aggregate event histories for {from_label}~{to_label}",
            str(error) or type(error).__name__,
        ]
        if traceback_text:
            lines.append(traceback_text.rstrip("\n"))
        self._notify("\n".join(lines))

    def _notify(self, message: str) -> None:
        self._echo(message)
        if not self.enabled:
            return

        try:
            post = self._session.post if self._session is not None else requests.post
            response = post(
                self._hook_url,
                data={"source": message},
                timeout=self._timeout_seconds,
            )
        except Exception:  # noqa: BLE001
            logger.exception("Failed to deliver aggregation webhook notification")
            return

        logger.info("webhook: %s", response.status_code)
