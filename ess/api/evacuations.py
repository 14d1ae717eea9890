"""
Evacuation file API endpoints.

Thin translation from HTTP requests to evacuation file commands and queries.
"""
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ess.api.deps import get_messaging_client
from ess.db import schemas
from ess.db.enums import EvacuationFileStatus
from ess.messaging import MessagingClient

router = APIRouter(prefix="/evacuation-files", tags=["evacuation-files"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_evacuation_file_endpoint(
    file: schemas.EvacuationFile,
    client: MessagingClient = Depends(get_messaging_client),
):
    if file.id is not None:
        raise HTTPException(status_code=400, detail="New evacuation files can not have an id")
    file_id = await client.send(schemas.SubmitEvacuationFileCommand(file=file))
    return {"id": file_id}


@router.put("/{file_id}")
async def update_evacuation_file_endpoint(
    file_id: str,
    file: schemas.EvacuationFile,
    client: MessagingClient = Depends(get_messaging_client),
):
    file = file.model_copy(update={"id": file_id})
    file_id = await client.send(schemas.SubmitEvacuationFileCommand(file=file))
    return {"id": file_id}


@router.delete("/{file_id}")
async def delete_evacuation_file_endpoint(
    file_id: str,
    client: MessagingClient = Depends(get_messaging_client),
):
    file_id = await client.send(schemas.DeleteEvacuationFileCommand(file_id=file_id))
    return {"id": file_id}


@router.get("/", response_model=List[schemas.EvacuationFile])
async def search_evacuation_files_endpoint(
    file_id: Optional[str] = None,
    needs_assessment_id: Optional[uuid.UUID] = None,
    primary_registrant_id: Optional[uuid.UUID] = None,
    household_member_id: Optional[uuid.UUID] = None,
    linked_registrant_id: Optional[uuid.UUID] = None,
    registration_date_from: Optional[datetime] = None,
    registration_date_to: Optional[datetime] = None,
    statuses: List[EvacuationFileStatus] = Query(default=[]),
    limit: Optional[int] = Query(default=None, gt=0),
    client: MessagingClient = Depends(get_messaging_client),
):
    result = await client.query(
        schemas.EvacuationFilesQuery(
            file_id=file_id,
            needs_assessment_id=needs_assessment_id,
            primary_registrant_id=primary_registrant_id,
            household_member_id=household_member_id,
            linked_registrant_id=linked_registrant_id,
            registration_date_from=registration_date_from,
            registration_date_to=registration_date_to,
            include_file_statuses=statuses,
            limit=limit,
        )
    )
    return result.items if result else []


@router.post("/{file_id}/notes", status_code=status.HTTP_201_CREATED)
async def create_note_endpoint(
    file_id: str,
    note: schemas.Note,
    client: MessagingClient = Depends(get_messaging_client),
):
    note = note.model_copy(update={"id": None})
    note_id = await client.send(schemas.SaveEvacuationFileNoteCommand(file_id=file_id, note=note))
    return {"id": note_id}


@router.put("/{file_id}/notes/{note_id}")
async def update_note_endpoint(
    file_id: str,
    note_id: uuid.UUID,
    note: schemas.Note,
    client: MessagingClient = Depends(get_messaging_client),
):
    note = note.model_copy(update={"id": note_id})
    note_id = await client.send(schemas.SaveEvacuationFileNoteCommand(file_id=file_id, note=note))
    return {"id": note_id}
