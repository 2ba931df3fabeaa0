"""Stream protocol client: frame decoding, event dispatch and state reduction."""

from .dispatcher import dispatch_frame
from .frames import FrameDecoder, aiter_frames, iter_frames
from .models import ConsoleState, LogLine, RawText, StreamEvent
from .reducer import reduce
from .session import afold_stream, fold_stream


__all__ = [
    "ConsoleState",
    "FrameDecoder",
    "LogLine",
    "RawText",
    "StreamEvent",
    "afold_stream",
    "aiter_frames",
    "dispatch_frame",
    "fold_stream",
    "iter_frames",
    "reduce",
]
