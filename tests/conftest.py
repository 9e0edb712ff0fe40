"""Shared fixtures: a notifier that records every call."""

import pytest


class RecordingNotifier:
    """Records the notifier calls made by the relocation engine.

    cancel_after=N makes progress() return False on the Nth call.
    """

    def __init__(self, cancel_after=None, on_progress=None):
        self.events = []
        self.progress_calls = []
        self.cancel_after = cancel_after
        self.on_progress = on_progress

    def started(self):
        self.events.append("started")

    def progress(self, bytes_so_far, total_bytes):
        self.progress_calls.append((bytes_so_far, total_bytes))
        if self.on_progress is not None:
            self.on_progress(bytes_so_far, total_bytes)
        if self.cancel_after is not None and len(self.progress_calls) >= self.cancel_after:
            return False
        return True

    def success(self):
        self.events.append("success")

    def failed(self, reason):
        self.events.append(("failed", reason))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_notifier():
    """The RecordingNotifier class, for tests that need cancel_after/on_progress."""
    return RecordingNotifier


@pytest.fixture
def recording_factory():
    """Notifier factory for the orchestrator; notifiers kept by source name."""
    created = {}

    def factory(request):
        rec = RecordingNotifier()
        created[request.source.name] = rec
        return rec

    factory.created = created
    return factory
