import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import CsvFormatError

logger = logging.getLogger(__name__)


async def csv_format_error_handler(_request: Request, exc: CsvFormatError) -> JSONResponse:
    logger.warning("Rejected upload: %s", exc.message)
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": exc.message},
    )
