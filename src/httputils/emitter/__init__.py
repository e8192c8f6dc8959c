"""
Response emitters and the sinks they write to.
"""

from .base import (
    DEFAULT_BUFFER_SIZE,
    EmissionPlan,
    EmissionState,
    RangeSpec,
    ResponseEmitter,
)
from .sinks import HeaderCall, OutputSink, RecordingSink, StreamSink
from .stdout import StdoutEmitter

__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "EmissionPlan",
    "EmissionState",
    "RangeSpec",
    "ResponseEmitter",
    "StdoutEmitter",
    "OutputSink",
    "StreamSink",
    "RecordingSink",
    "HeaderCall",
]
