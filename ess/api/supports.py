"""
Support API endpoints.

Save, status change, approval submission and search for evacuee supports.
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from ess.api.deps import get_messaging_client
from ess.db import schemas
from ess.db.enums import SupportStatus
from ess.messaging import MessagingClient

router = APIRouter(tags=["supports"])


@router.post("/evacuation-files/{file_id}/supports", response_model=List[schemas.Support])
async def save_supports_endpoint(
    file_id: str,
    supports: List[schemas.Support],
    client: MessagingClient = Depends(get_messaging_client),
):
    result = await client.send(schemas.SaveEvacuationFileSupportCommand(file_id=file_id, supports=supports))
    return result.supports


@router.post("/supports/status")
async def change_support_status_endpoint(
    cmd: schemas.ChangeSupportStatusCommand,
    client: MessagingClient = Depends(get_messaging_client),
):
    result = await client.send(cmd)
    return {"ids": result.ids}


@router.post("/supports/{support_id}/approval", response_model=schemas.SubmitSupportForApprovalCommandResult)
async def submit_support_for_approval_endpoint(
    support_id: str,
    flags: List[schemas.SupportFlag] = Body(default=[]),
    client: MessagingClient = Depends(get_messaging_client),
):
    return await client.send(schemas.SubmitSupportForApprovalCommand(support_id=support_id, flags=flags))


@router.get("/supports", response_model=List[schemas.Support])
async def search_supports_endpoint(
    by_id: Optional[str] = None,
    by_manual_referral_id: Optional[str] = None,
    by_evacuation_file_id: Optional[str] = None,
    by_status: Optional[SupportStatus] = None,
    limit: Optional[int] = Query(default=None, gt=0),
    client: MessagingClient = Depends(get_messaging_client),
):
    result = await client.query(
        schemas.SearchSupportsQuery(
            by_id=by_id,
            by_manual_referral_id=by_manual_referral_id,
            by_evacuation_file_id=by_evacuation_file_id,
            by_status=by_status,
            limit=limit,
        )
    )
    return result.items if result else []
