from __future__ import annotations

import pytest

from mock_http_client import RecordingLogger


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()
