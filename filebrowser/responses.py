"""Streaming response for planned downloads.

Each response walks ``PENDING -> HEADERS_SENT -> STREAMING`` and ends in
``COMPLETED`` or ``ABORTED``. Failures while ``PENDING`` still produce a
JSON 500. Once the start message is out the only thing left to do on a
failure is to drop the connection, so the error is logged and re-raised.
"""

from __future__ import annotations

import enum
import errno
import logging
import os
from functools import partial

import anyio
from starlette.responses import JSONResponse, Response
from starlette.types import Receive, Scope, Send

from .config import settings
from .services.download import DownloadPlan

logger = logging.getLogger(__name__)

_NOFOLLOW = getattr(os, 'O_NOFOLLOW', 0)


def _open_nofollow(path, flags):
    return os.open(path, flags | _NOFOLLOW)


class StreamState(str, enum.Enum):
    PENDING = 'pending'
    HEADERS_SENT = 'headers_sent'
    STREAMING = 'streaming'
    COMPLETED = 'completed'
    ABORTED = 'aborted'


class FileSpanResponse(Response):
    """Send ``plan.start..plan.end`` of ``plan.path`` in bounded chunks."""

    def __init__(self, plan: DownloadPlan, chunk_size: int | None = None):
        self.plan = plan
        self.chunk_size = chunk_size or settings.download_chunk_size
        self.status_code = plan.status_code
        self.media_type = plan.media_type
        self.background = None
        self.init_headers(plan.headers)
        self.state = StreamState.PENDING
        self._stream_error: OSError | None = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            handle = await anyio.open_file(self.plan.path, 'rb', opener=_open_nofollow)
        except OSError as exc:
            await self._fail_before_headers(exc, scope, receive, send)
            return

        async with handle:
            try:
                self._check_identity(handle)
                if self.plan.start > 0:
                    await handle.seek(self.plan.start)
            except OSError as exc:
                await self._fail_before_headers(exc, scope, receive, send)
                return

            async with anyio.create_task_group() as task_group:

                async def wrap(func) -> None:
                    await func()
                    task_group.cancel_scope.cancel()

                task_group.start_soon(wrap, partial(self._stream, handle, send))
                await wrap(partial(self._listen_for_disconnect, receive))

        if self._stream_error is not None:
            raise self._stream_error
        if self.state is not StreamState.COMPLETED:
            self.state = StreamState.ABORTED
            logger.info('Download of %r cancelled by client', self.plan.filename)

    def _check_identity(self, handle) -> None:
        st = os.fstat(handle.wrapped.fileno())
        if (st.st_dev, st.st_ino) != (self.plan.device, self.plan.inode):
            raise OSError(errno.ESTALE, 'file was replaced after the download was planned')

    async def _fail_before_headers(self, exc: OSError, scope: Scope, receive: Receive, send: Send) -> None:
        logger.error('Download stream error for %r: %s', self.plan.filename, exc.strerror or exc)
        self.state = StreamState.ABORTED
        await JSONResponse({'error': 'Error downloading file'}, status_code=500)(scope, receive, send)

    async def _listen_for_disconnect(self, receive: Receive) -> None:
        while True:
            message = await receive()
            if message['type'] == 'http.disconnect':
                break

    async def _stream(self, handle, send: Send) -> None:
        await send({'type': 'http.response.start', 'status': self.status_code, 'headers': self.raw_headers})
        self.state = StreamState.HEADERS_SENT

        remaining = self.plan.length
        self.state = StreamState.STREAMING
        while remaining > 0:
            try:
                chunk = await handle.read(min(self.chunk_size, remaining))
                if not chunk:
                    raise OSError(errno.EIO, 'file shrank during download')
            except OSError as exc:
                self.state = StreamState.ABORTED
                logger.error(
                    'Download stream error for %r after headers were sent, aborting connection: %s',
                    self.plan.filename,
                    exc.strerror or exc,
                )
                self._stream_error = exc
                return
            remaining -= len(chunk)
            await send({'type': 'http.response.body', 'body': chunk, 'more_body': True})

        await send({'type': 'http.response.body', 'body': b'', 'more_body': False})
        self.state = StreamState.COMPLETED
