from __future__ import annotations

from fastapi import HTTPException, Request, status

from .services.file_ops import FileOps


def get_file_ops(request: Request) -> FileOps:
    ops = getattr(request.app.state, 'file_ops', None)
    if ops is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail='Service not ready')
    return ops
