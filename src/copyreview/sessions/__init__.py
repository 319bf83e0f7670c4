"""Session logging records and sinks."""

from .models import CallRecord, SessionRecord
from .sinks import (
    FileSessionLogSink,
    InMemorySessionLogSink,
    NullSessionLogSink,
    SessionLogSink,
    create_session_sink,
    render_summary,
)

__all__ = [
    "CallRecord",
    "SessionRecord",
    "SessionLogSink",
    "NullSessionLogSink",
    "InMemorySessionLogSink",
    "FileSessionLogSink",
    "create_session_sink",
    "render_summary",
]
