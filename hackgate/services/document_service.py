"""
Document gate — payment screenshot and ID card uploads.

Order of operations keeps storage and database consistent:
  1. put both new blobs
  2. swap the handles on the team in one guarded UPDATE
  3. release the previous blobs
If 1 or 2 fails, the new blobs are released and the team keeps its old
documents; nothing is left orphaned either way.

Step 3 is only safe once the swap is committed. A caller that commits
later (the bot handlers, via DatabaseMiddleware) passes
release_previous=False, commits, then calls release_blobs with
replaced_handles; if the commit fails it releases new_handles instead.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.errors import PaymentNotStartedError, ValidationFailure
from hackgate.models.models import utcnow
from hackgate.services.registration_service import apply_team_update, require_team
from hackgate.services.storage_service import BlobStore, StoredBlob

logger = logging.getLogger(__name__)

MAX_DOCUMENT_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class UploadedDocuments:
    payment_url:      str
    id_url:           str
    new_handles:      Tuple[str, ...] = ()
    replaced_handles: Tuple[str, ...] = ()


async def release_blobs(storage: BlobStore, handles: Iterable[Optional[str]]) -> None:
    for handle in handles:
        if not handle:
            continue
        try:
            await storage.delete(handle)
        except Exception:
            logger.exception("Could not release blob %s", handle)


async def upload_documents(
    session: AsyncSession,
    team_id: int,
    payment_proof_blob: bytes,
    id_card_blob: bytes,
    storage: BlobStore,
    release_previous: bool = True,
) -> UploadedDocuments:
    if not payment_proof_blob or not id_card_blob:
        raise ValidationFailure("Both payment screenshot and ID card are required")
    if len(payment_proof_blob) > MAX_DOCUMENT_BYTES or len(id_card_blob) > MAX_DOCUMENT_BYTES:
        raise ValidationFailure("Each document must be at most 10 MB")

    team = await require_team(session, team_id)
    if team.payment_proof is None:
        raise PaymentNotStartedError()

    old_handles = tuple(
        h for h in (team.payment_screenshot_handle, team.id_card_handle) if h
    )

    stored: List[StoredBlob] = []
    try:
        stored.append(await storage.put(payment_proof_blob, f"{team.id}_payment"))
        stored.append(await storage.put(id_card_blob, f"{team.id}_idcard"))
        payment_doc, id_doc = stored
        team = await apply_team_update(
            session,
            team,
            payment_screenshot_url=payment_doc.url,
            payment_screenshot_handle=payment_doc.handle,
            id_card_url=id_doc.url,
            id_card_handle=id_doc.handle,
            documents_uploaded_at=utcnow(),
        )
    except Exception:
        await release_blobs(storage, [blob.handle for blob in stored])
        raise

    if release_previous:
        await release_blobs(storage, old_handles)
    logger.info("Documents uploaded for team %s", team.registration_number)
    return UploadedDocuments(
        payment_url=payment_doc.url,
        id_url=id_doc.url,
        new_handles=(payment_doc.handle, id_doc.handle),
        replaced_handles=() if release_previous else old_handles,
    )
