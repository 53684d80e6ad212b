from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from academy.core.config import settings
from academy.core.errors import AppError


def error_response(status_code: int, message: str, code: str, **extra) -> JSONResponse:
    content = {'success': False, 'message': message, 'code': code}
    content.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(status_code=status_code, content=content)


def _format_validation_errors(errors) -> list[dict]:
    formatted = []
    for error in errors:
        location = [str(part) for part in error.get('loc', ()) if part != 'body']
        message = str(error.get('msg', 'Invalid value'))
        if message.startswith('Value error, '):
            message = message[len('Value error, '):]
        formatted.append({'field': '.'.join(location), 'message': message})
    return formatted


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log('{} {} -> {} {}', request.method, request.url.path, exc.status_code, exc.code)
        return error_response(exc.status_code, exc.message, exc.code, errors=exc.errors)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = _format_validation_errors(exc.errors())
        logger.warning('{} {} -> 400 validation error', request.method, request.url.path)
        message = errors[0]['message'] if errors else 'Validation error'
        return error_response(400, message, 'VALIDATION_ERROR', errors=errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, 'Route not found', 'NOT_FOUND', path=request.url.path)
        message: Optional[str] = exc.detail if isinstance(exc.detail, str) else None
        return error_response(exc.status_code, message or 'HTTP error', f'HTTP_{exc.status_code}')

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.opt(exception=exc).error('Unhandled error on {} {}', request.method, request.url.path)
        message = str(exc) if settings.DEBUG else 'Internal server error'
        return error_response(500, message, 'INTERNAL_ERROR')
