from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import Response

from ..deps import get_file_ops
from ..errors import AccessDenied, InvalidOperation, NotFound, RangeNotSatisfiable
from ..responses import FileSpanResponse
from ..schemas import ErrorResponse
from ..services.download import plan_download
from ..services.file_ops import FileOps

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api/download', tags=['download'])


@router.get(
    '/{path:path}',
    responses={
        206: {'description': 'Partial content'},
        400: {'model': ErrorResponse},
        403: {'model': ErrorResponse},
        404: {'model': ErrorResponse},
        416: {'description': 'Range not satisfiable'},
        500: {'model': ErrorResponse},
    },
)
def download(
    path: str,
    range_header: Optional[str] = Header(default=None, alias='Range'),
    ops: FileOps = Depends(get_file_ops),
):
    try:
        target = ops.safe_path(path)
        plan = plan_download(target, range_header)
    except AccessDenied:
        raise HTTPException(status_code=403, detail='Access denied')
    except NotFound:
        raise HTTPException(status_code=404, detail='File not found')
    except RangeNotSatisfiable as exc:
        return Response(status_code=416, headers={'Content-Range': f'bytes */{exc.total_size}'})
    except InvalidOperation as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except OSError:
        logger.exception('Error preparing download of %r', path)
        raise HTTPException(status_code=500, detail='Error downloading file')

    return FileSpanResponse(plan)
