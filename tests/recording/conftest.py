"""Fixtures for session capture tests."""

import pytest
from factories import T0, TAB_ID

from src.recording.models import CaptureTarget
from src.recording.session import CaptureSession


@pytest.fixture
def target():
    """Recording target."""
    return CaptureTarget(
        tab_id=TAB_ID,
        domain="site.example",
        initial_url="https://site.example/signup",
    )


@pytest.fixture
def session(settings, target):
    """A session that is already recording, started at T0."""
    capture = CaptureSession(settings=settings, clock=lambda: T0)
    capture.start(target)
    return capture
