"""Replay session preparation and batched creation.

Requests are reconciled with the chosen auth, resolved into RequestSpecs
and named, then handed to a SessionService in small concurrent batches.
One failing session never stops its siblings.
"""

import asyncio
from typing import Protocol

from pydantic import BaseModel

from api_doc_import.log import get_logger
from api_doc_import.parser.base import CanonicalRequest
from .auth import AuthConfig, NoAuth, apply_authentication
from .spec import RequestSpec, build_request_spec, generate_session_name

logger = get_logger(__name__)


class ProcessedRequest(BaseModel):
    """What the session service receives for one request."""

    request: CanonicalRequest
    spec: RequestSpec
    session_name: str


class SessionOutcome(BaseModel):
    session_name: str
    created: bool
    session_id: str | None = None
    error: str | None = None


class SessionBatchResult(BaseModel):
    collection_name: str
    outcomes: list[SessionOutcome]

    @property
    def created_count(self) -> int:
        return sum(1 for o in self.outcomes if o.created)

    @property
    def failed_count(self) -> int:
        return len(self.outcomes) - self.created_count

    @property
    def message(self) -> str:
        return (
            f"Created {self.created_count} of {len(self.outcomes)} sessions "
            f'in collection "{self.collection_name}"'
        )


class SessionService(Protocol):
    """Turns a RequestSpec into a stored replay session inside a named collection."""

    async def create_session(
        self,
        spec: RequestSpec,
        request: CanonicalRequest,
        session_name: str,
        collection_name: str,
    ) -> str:
        """Create one session and return its id."""
        ...


def prepare_sessions(
    requests: list[CanonicalRequest],
    auth: AuthConfig | None = None,
) -> list[ProcessedRequest]:
    """Apply auth, build specs and derive names; requests without a spec are dropped."""
    auth = auth or NoAuth()
    processed = []
    for request in requests:
        authed = apply_authentication(request, auth)
        spec = build_request_spec(authed, auth.hostname)
        if spec is None:
            continue
        processed.append(
            ProcessedRequest(request=authed, spec=spec, session_name=generate_session_name(authed))
        )
    logger.info("Prepared %d of %d requests for session creation", len(processed), len(requests))
    return processed


async def create_sessions(
    processed: list[ProcessedRequest],
    collection_name: str,
    service: SessionService,
    batch_size: int = 5,
    batch_pause: float = 0.1,
) -> SessionBatchResult:
    """Create sessions batch by batch, collecting an outcome per request."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    outcomes: list[SessionOutcome] = []
    for start in range(0, len(processed), batch_size):
        if start:
            await asyncio.sleep(batch_pause)
        batch = processed[start:start + batch_size]
        outcomes.extend(
            await asyncio.gather(*(_create_one(item, collection_name, service) for item in batch))
        )

    result = SessionBatchResult(collection_name=collection_name, outcomes=outcomes)
    logger.info(result.message)
    return result


async def _create_one(
    item: ProcessedRequest, collection_name: str, service: SessionService
) -> SessionOutcome:
    try:
        session_id = await service.create_session(
            item.spec, item.request, item.session_name, collection_name
        )
    except Exception as e:
        logger.warning("Failed to create session %s: %s", item.session_name, e)
        return SessionOutcome(session_name=item.session_name, created=False, error=str(e))
    return SessionOutcome(session_name=item.session_name, created=True, session_id=session_id)
