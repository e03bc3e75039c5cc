from __future__ import annotations

import logging
from typing import Union

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_file_ops
from ..errors import AccessDenied, NotFound
from ..schemas import DirectoryListing, ErrorResponse, FileIdentity
from ..services.file_ops import FileOps

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api/files', tags=['files'])

_ERRORS = {403: {'model': ErrorResponse}, 404: {'model': ErrorResponse}, 500: {'model': ErrorResponse}}


@router.get('', response_model=Union[DirectoryListing, FileIdentity], responses=_ERRORS)
@router.get('/{path:path}', response_model=Union[DirectoryListing, FileIdentity], responses=_ERRORS)
def browse(path: str = '', ops: FileOps = Depends(get_file_ops)):
    try:
        return ops.browse(path)
    except AccessDenied:
        raise HTTPException(status_code=403, detail='Access denied')
    except NotFound:
        raise HTTPException(status_code=404, detail='Path not found')
    except OSError:
        logger.exception('Error listing %r', path)
        raise HTTPException(status_code=500, detail='Internal server error')
