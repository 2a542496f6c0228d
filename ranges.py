import re
import logging
from typing import NamedTuple, Optional

_logger = logging.getLogger("gtr2dev.ranges")

INVALID_RANGE = "Invalid Range header"

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MAX = 2**63 - 1
_INT64_MIN = -(2**63)


class MalformedRange(ValueError):
    """Raised when a Range header cannot be served; always answered with 400."""

    def __init__(self, header: str, reason: str):
        super().__init__(INVALID_RANGE)
        self.header = header
        self.reason = reason


class ByteRange(NamedTuple):
    start: int
    end: int  # inclusive
    partial: bool

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, total: int) -> str:
        return f"bytes {self.start}-{self.end}/{total}"


def _parse_int(s: str) -> Optional[int]:
    # Sign and ASCII digits only; int() alone would also take " 5" and "1_0".
    if not _INT_RE.fullmatch(s):
        return None
    n = int(s)
    if n > _INT64_MAX or n < _INT64_MIN:
        return None
    return n


def resolve_range(range_header: Optional[str], content_length: int) -> ByteRange:
    """Resolve a ``Range`` header value against a content of ``content_length`` bytes.

    Accepted forms are ``bytes=S-E``, ``bytes=S-`` and ``bytes=-N``. Only one
    range is supported. An end past the content (or an unparseable end) is
    clamped to the last byte, and a negative start is clamped to zero.

    Returns a full-content ``ByteRange`` when no header is given; raises
    ``MalformedRange`` for anything that cannot be served.
    """
    if not range_header:
        return ByteRange(0, content_length - 1, partial=False)

    unit_spec = range_header.split("=")
    if len(unit_spec) != 2 or unit_spec[0] != "bytes":
        raise MalformedRange(range_header, "expected a single 'bytes=' unit")

    parts = unit_spec[1].split("-")
    if len(parts) != 2:
        raise MalformedRange(range_header, "expected exactly one '-' separator")
    start_s, end_s = parts

    if start_s == "":
        if end_s == "":
            raise MalformedRange(range_header, "empty range")
        # bytes=-N: the last N bytes
        suffix = _parse_int(end_s)
        if suffix is None:
            raise MalformedRange(range_header, f"bad suffix length {end_s!r}")
        start = content_length - suffix
        end = content_length - 1
    else:
        start = _parse_int(start_s)
        if start is None:
            raise MalformedRange(range_header, f"bad start {start_s!r}")
        if end_s == "":
            end = content_length - 1
        else:
            end = _parse_int(end_s)
            if end is None or end >= content_length:
                end = content_length - 1

    if start < 0:
        start = 0

    if start > end or start >= content_length:
        raise MalformedRange(
            range_header, f"unsatisfiable interval {start}-{end} for length {content_length}"
        )

    _logger.debug("Resolved %r to bytes %d-%d/%d", range_header, start, end, content_length)
    return ByteRange(start, end, partial=True)
