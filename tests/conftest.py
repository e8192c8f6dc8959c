"""
pytest configuration and fixtures.
"""

import io

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httputils.emitter import RecordingSink, StdoutEmitter
from httputils.http import HTTPResponse, Stream


ALPHABET = "abcdefghijklmnopqrstuvwxyz"


class UnseekableBytesIO(io.BytesIO):
    """In-memory body that refuses to seek (like a pipe with a known size)."""

    def seekable(self) -> bool:
        return False


@pytest.fixture
def alphabet() -> str:
    """The 26-letter body used by the range tests."""
    return ALPHABET


@pytest.fixture
def sink() -> RecordingSink:
    """Fresh in-memory sink."""
    return RecordingSink()


@pytest.fixture
def emit():
    """
    Emit a response into a RecordingSink and return the sink.

    Usage:
        sink = emit(HTTPResponse(body="Hello"), buffer_size=5)
    """
    def _emit(response: HTTPResponse, buffer_size: int = 8192, sink: RecordingSink = None) -> RecordingSink:
        sink = sink if sink is not None else RecordingSink()
        StdoutEmitter(response, buffer_size, sink).emit()
        return sink

    return _emit


@pytest.fixture
def unseekable_body():
    """Factory for non-seekable body streams of known size."""
    def _make(content: bytes) -> Stream:
        return Stream(UnseekableBytesIO(content))

    return _make
