"""
API error types and exception handlers.

Every error body carries ``detail``. Validation failures add ``errors``
(one ``{"field", "message"}`` entry per problem) and unique-constraint
conflicts add a machine-readable ``code``.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.blocks import BlockValidationError

logger = logging.getLogger(__name__)


# Conflict codes
SLUG_EXISTS = "SLUG_EXISTS"
EMAIL_EXISTS = "EMAIL_EXISTS"
USERNAME_EXISTS = "USERNAME_EXISTS"
DUPLICATE_AUTHOR = "DUPLICATE_AUTHOR"
DUPLICATE_VOTE = "DUPLICATE_VOTE"
DUPLICATE_TAXONOMY = "DUPLICATE_TAXONOMY"
CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"

# Constraint fragments as they appear in PostgreSQL and SQLite messages
_CONSTRAINT_CODES = (
    (("articles_slug_key", "articles.slug"), SLUG_EXISTS),
    (("users_email_key", "ix_users_email", "users.email"), EMAIL_EXISTS),
    (("users_username_key", "users.username"), USERNAME_EXISTS),
    (("uq_article_authors_article_user", "article_authors.article_id"), DUPLICATE_AUTHOR),
    (("uq_votes_user_comment", "votes.user_id"), DUPLICATE_VOTE),
    (
        ("uq_article_taxonomy", "article_taxonomy.article_id", "uq_taxonomy_slug_type", "taxonomy.slug"),
        DUPLICATE_TAXONOMY,
    ),
)

_CONFLICT_MESSAGES = {
    SLUG_EXISTS: "An article with this slug already exists",
    EMAIL_EXISTS: "Email already registered",
    USERNAME_EXISTS: "Username already taken",
    DUPLICATE_AUTHOR: "User is already an author of this article",
    DUPLICATE_VOTE: "You have already voted on this comment",
    DUPLICATE_TAXONOMY: "Taxonomy entry already exists",
    CONSTRAINT_VIOLATION: "Request conflicts with existing data",
}


class ConflictError(Exception):
    """A write that collides with a unique constraint."""

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.message = message or _CONFLICT_MESSAGES.get(code, _CONFLICT_MESSAGES[CONSTRAINT_VIOLATION])
        super().__init__(self.message)


def classify_integrity_error(exc: IntegrityError) -> str:
    """Map a driver integrity error to a conflict code."""
    text = str(exc.orig if exc.orig is not None else exc)
    for fragments, code in _CONSTRAINT_CODES:
        if any(fragment in text for fragment in fragments):
            return code
    return CONSTRAINT_VIOLATION


async def commit_or_conflict(db: AsyncSession) -> None:
    """Commit, turning a unique-constraint failure into :class:`ConflictError`."""
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        code = classify_integrity_error(e)
        logger.info("Commit rejected with %s", code)
        raise ConflictError(code) from e


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation error", "errors": errors},
    )


async def block_validation_exception_handler(request: Request, exc: BlockValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation error", "errors": exc.errors},
    )


async def conflict_exception_handler(request: Request, exc: ConflictError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "code": exc.code},
    )


async def integrity_exception_handler(request: Request, exc: IntegrityError):
    code = classify_integrity_error(exc)
    logger.warning("Unhandled integrity error on %s: %s", request.url.path, code)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": _CONFLICT_MESSAGES[code], "code": code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(BlockValidationError, block_validation_exception_handler)
    app.add_exception_handler(ConflictError, conflict_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
