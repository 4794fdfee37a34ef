# backend/utils/errors.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes remapped to client errors
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_STRING_TOO_LONG = "22001"


def _sqlstate(exc: SQLAlchemyError):
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Richiesta non valida"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    msg = first.get("msg", "valore non valido")
    # field_validator messages come prefixed with "Value error, "
    msg = msg.removeprefix("Value error, ")
    if first.get("type") == "missing":
        return f"Campo obbligatorio mancante: {field}"
    return f"{field}: {msg}" if field else msg


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed input is a 400 for this API, not FastAPI's default 422
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": _validation_message(exc), "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]


async def integrity_exception_handler(request: Request, exc: IntegrityError):
    code = _sqlstate(exc)
    text = str(exc.orig).lower() if exc.orig is not None else ""
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)

    if code == PG_UNIQUE_VIOLATION or "unique constraint" in text:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": "Risorsa già esistente"})
    if code == PG_FOREIGN_KEY_VIOLATION or "foreign key constraint" in text:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": "Violazione di integrità referenziale"})
    return await sqlalchemy_exception_handler(request, exc)


async def data_exception_handler(request: Request, exc: DataError):
    if _sqlstate(exc) == PG_STRING_TOO_LONG:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Uno dei campi supera la lunghezza massima consentita"},
        )
    return await sqlalchemy_exception_handler(request, exc)


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Errore interno del server", "details": str(getattr(exc, "orig", None) or exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(DataError, data_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
