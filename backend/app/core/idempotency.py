"""Idempotency-Key handling for the mutating storefront endpoints.

An endpoint calls ``check_idempotency`` first. The key is claimed per request
path and bound to a fingerprint of the request payload. A key that already
carries a response is answered from storage with ``Idempotency-Replayed: true``;
a key reused with a different payload is refused. Once the endpoint succeeds it
calls ``record_idempotency_response`` so later retries replay the same body.
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.repositories.idempotency_repository import IdempotencyRepository

IDEMPOTENCY_HEADER = "Idempotency-Key"
REPLAYED_HEADER = "Idempotency-Replayed"
MAX_KEY_LENGTH = 255


@dataclass
class IdempotencyResult:
    """A claimed key whose response still has to be recorded."""

    key: str
    method: str
    path: str


def request_fingerprint(payload: Any) -> str:
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def check_idempotency(
    request: Request,
    db: Session,
    payload: Any = None,
) -> JSONResponse | IdempotencyResult | None:
    """Claim the request's Idempotency-Key, or replay what it already produced.

    Returns ``None`` when the header is absent, a ``JSONResponse`` when a
    response was recorded for the key, and an ``IdempotencyResult`` otherwise.
    """
    key = request.headers.get(IDEMPOTENCY_HEADER)
    if not key:
        return None
    if len(key) > MAX_KEY_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{IDEMPOTENCY_HEADER} must be at most {MAX_KEY_LENGTH} characters",
        )

    fingerprint = request_fingerprint(payload) if payload is not None else None
    path = request.url.path
    record, _ = IdempotencyRepository(db).claim(
        idempotency_key=key,
        request_method=request.method,
        request_path=path,
        request_fingerprint=fingerprint,
    )

    if (
        fingerprint is not None
        and record.request_fingerprint is not None
        and record.request_fingerprint != fingerprint
    ):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{IDEMPOTENCY_HEADER} was already used with a different request",
        )

    if record.response_status is not None:
        return JSONResponse(
            content=record.response_body,
            status_code=int(record.response_status),
            headers={REPLAYED_HEADER: "true"},
        )

    return IdempotencyResult(key=key, method=request.method, path=path)


def record_idempotency_response(
    db: Session,
    idempotency: IdempotencyResult,
    status: int,
    body: dict[str, Any],
) -> None:
    repo = IdempotencyRepository(db)
    record = repo.get_by_key(idempotency.path, idempotency.key)
    if record is not None:
        repo.store_response(record, status, body)
