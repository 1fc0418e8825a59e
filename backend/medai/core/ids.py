"""Record identifiers. UUID4 strings, generated application-side."""
import threading
import time
import uuid

_seq_lock = threading.Lock()
_last_seq = 0


def new_id() -> str:
    return str(uuid.uuid4())


def next_sequence() -> int:
    """
    Strictly increasing insertion counter (nanosecond clock, bumped on ties).

    UUIDs carry no order and timestamps can collide, so listings sort on this.
    """
    global _last_seq
    with _seq_lock:
        _last_seq = max(_last_seq + 1, time.time_ns())
        return _last_seq
