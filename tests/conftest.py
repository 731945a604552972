"""Shared fixtures for ldpclient tests."""

import logging
from typing import Optional

import pytest
from ldpclient.http import HttpResponse, RequestDescriptor


def make_response(
    status_code: int = 200,
    content: bytes = b"",
    content_type: str = "text/turtle",
    url: str = "https://pod.example/resource",
) -> HttpResponse:
    """Build an HttpResponse for tests."""
    return HttpResponse(
        status_code=status_code,
        content=content,
        content_type=content_type,
        headers={"Content-Type": content_type} if content_type else {},
        url=url,
    )


class RecordingTransport:
    """Transport double that records every request and returns a canned outcome."""

    def __init__(self, response: Optional[HttpResponse] = None, error: Optional[BaseException] = None):
        self.response = response or make_response()
        self.error = error
        self.calls: list[RequestDescriptor] = []

    async def send(self, method, url, headers, body=None):
        self.calls.append(RequestDescriptor(method=method, url=url, headers=headers, body=body))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def transport():
    """Transport returning 200 for every request."""
    return RecordingTransport()


@pytest.fixture
def restore_ldpclient_logger():
    """Undo setup_logging() changes to the package logger."""
    logger = logging.getLogger("ldpclient")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
