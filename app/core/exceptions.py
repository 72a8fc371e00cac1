"""
Global exception handling for the application.
Standardizes error responses using Problem Details for HTTP APIs (RFC 7807).
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class EntityNotFoundException(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Registro não encontrado", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class BusinessRuleViolationException(AppError):
    """Business logic violation error."""
    def __init__(self, message: str = "Regra de negócio violada", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY, details)


# ---------------------------------------------------------------------------
# Spreadsheet import failures. All of them reach the user as a message plus
# diagnostic details; none is retried automatically.
# ---------------------------------------------------------------------------


class SpreadsheetImportError(BusinessRuleViolationException):
    """Base class for import pipeline failures."""


class FileUnreadableError(SpreadsheetImportError):
    """The uploaded bytes could not be decoded as a workbook."""
    def __init__(self, message: str = "Não foi possível ler o arquivo Excel", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class HeaderNotFoundError(SpreadsheetImportError):
    """No row of any sheet looks like a header row."""
    def __init__(self, message: str = "Cabeçalho não encontrado na planilha", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class RequiredColumnsNotFoundError(SpreadsheetImportError):
    """Client name or due date could not be mapped to any column."""
    def __init__(self, message: str = "Colunas obrigatórias não encontradas", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class NoValidRowsError(SpreadsheetImportError):
    """Every data row was missing a client name or a valid due date."""
    def __init__(self, message: str = "Nenhuma linha válida encontrada", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class AllRowsDuplicateError(SpreadsheetImportError):
    """Every valid row matched an existing renewal."""
    def __init__(self, message: str = "Todas as linhas já existem no sistema", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class BatchWriteError(AppError):
    """Persisting the new clients or policies failed."""
    def __init__(self, message: str = "Erro ao salvar os dados", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)


class ImportInProgressError(AppError):
    """Another import is still running in this process."""
    def __init__(self, message: str = "Já existe uma importação em andamento", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_409_CONFLICT, details)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""

    if isinstance(exc, AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": exc.__class__.__name__,
                    "message": exc.message,
                    "details": exc.details,
                    "path": request.url.path,
                }
            },
        )

    logger.exception("Unexpected error occurred", path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "InternalServerError",
                "message": "Ocorreu um erro inesperado. Tente novamente mais tarde.",
                "path": request.url.path,
            }
        },
    )
