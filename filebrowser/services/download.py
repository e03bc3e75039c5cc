"""Range-aware download planning.

``plan_download`` only looks at the file's metadata; the bytes themselves
are streamed later by ``responses.FileSpanResponse``.
"""

from __future__ import annotations

import mimetypes
import re
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from ..errors import InvalidOperation, NotFound, RangeNotSatisfiable

_RANGE_RE = re.compile(r'^bytes=(\d*)-(\d*)$')

# left unescaped in the quoted filename
_DISPOSITION_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class ByteRange:
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass
class DownloadPlan:
    path: Path
    filename: str
    media_type: str
    total_size: int
    status_code: int
    start: int
    end: int
    headers: dict[str, str] = field(default_factory=dict)
    device: int = 0
    inode: int = 0

    @property
    def length(self) -> int:
        return self.end - self.start + 1 if self.total_size else 0


def parse_range(header: str, total_size: int) -> ByteRange:
    """Parse a single ``bytes=<start>-<end>`` range against ``total_size``.

    Either bound may be omitted: a missing start means 0 and a missing end
    means the last byte. An end past the file is clamped. Anything else
    that cannot be served raises ``RangeNotSatisfiable``.
    """
    match = _RANGE_RE.match(header.strip())
    if not match:
        raise RangeNotSatisfiable(total_size)

    start_s, end_s = match.groups()
    try:
        start = int(start_s) if start_s else 0
        end = int(end_s) if end_s else total_size - 1
    except ValueError:
        # digit runs past the interpreter's int conversion limit
        raise RangeNotSatisfiable(total_size)

    if start > end or start >= total_size:
        raise RangeNotSatisfiable(total_size)
    return ByteRange(start, min(end, total_size - 1))


def content_disposition(filename: str) -> str:
    return f'attachment; filename="{quote(filename, safe=_DISPOSITION_SAFE)}"'


def guess_media_type(filename: str) -> str:
    media_type, _ = mimetypes.guess_type(filename)
    return media_type or 'application/octet-stream'


def plan_download(target: Path, range_header: Optional[str] = None) -> DownloadPlan:
    try:
        st = target.stat()
    except FileNotFoundError as exc:
        raise NotFound('File not found') from exc

    if stat.S_ISDIR(st.st_mode):
        raise InvalidOperation('Cannot download directory')

    total = st.st_size
    filename = target.name
    media_type = guess_media_type(filename)
    headers = {
        'Accept-Ranges': 'bytes',
        'Content-Type': media_type,
        'Content-Disposition': content_disposition(filename),
    }

    if range_header is None:
        headers['Content-Length'] = str(total)
        return DownloadPlan(
            target, filename, media_type, total, 200, 0, total - 1, headers, device=st.st_dev, inode=st.st_ino
        )

    span = parse_range(range_header, total)
    headers['Content-Range'] = f'bytes {span.start}-{span.end}/{total}'
    headers['Content-Length'] = str(span.length)
    return DownloadPlan(
        target, filename, media_type, total, 206, span.start, span.end, headers, device=st.st_dev, inode=st.st_ino
    )
