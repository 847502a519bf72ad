"""Notifiers — deliver a finished ``RunResult`` to an external channel."""

from __future__ import annotations

from typing import Protocol

from evidency_monitor.model.run_result import RunResult


class Notifier(Protocol):
    name: str

    def send(self, result: RunResult) -> bool:
        """Deliver *result*; return True on success."""
        ...


def __getattr__(name: str):
    if name == "WebhookNotifier":
        from evidency_monitor.notify.webhook import WebhookNotifier

        return WebhookNotifier
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
