"""Remote document endpoints: /api/{user_id}/data."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import ValidationError
from sqlmodel import Session

from todays.db.config import get_session
from todays.middleware.auth import CurrentUser, get_current_user, verify_user_access
from todays.models.snapshot import Snapshot
from todays.schemas.sync import PushAck, PushRequest, RemoteDocument
from todays.services.user_data_service import UserDataService
from todays.ws.notifier import change_notifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["User Data"])


@router.get("/{user_id}/data", response_model=RemoteDocument, response_model_by_alias=True)
async def get_user_data(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Return the stored document for the authenticated user."""
    verify_user_access(user_id, current_user)

    row = UserDataService(session).get(user_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No data stored for this user")

    return RemoteDocument(
        identity=row.user_id,
        data=row.data,
        schema_version=row.schema_version,
        updated_at=row.updated_at,
    )


@router.put("/{user_id}/data", response_model=PushAck, response_model_by_alias=True)
async def put_user_data(
    user_id: str,
    body: PushRequest,
    create_only: bool = Query(False, description="Refuse with 409 if a document already exists"),
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Replace the user's whole document.

    With ``create_only`` the write only happens when nothing is stored yet, so
    a first-time migration never overwrites data pushed by another device.
    """
    verify_user_access(user_id, current_user)

    try:
        data = Snapshot.from_document(body.data).to_document()
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Document is not a valid snapshot: {e.error_count()} error(s)",
        )

    service = UserDataService(session)
    if create_only:
        row = service.create_if_absent(user_id, data, body.schema_version)
        if row is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Data already exists for this user")
    else:
        row = service.upsert(user_id, data, body.schema_version)

    await change_notifier.notify_user_data_updated(user_id, row.updated_at)
    return PushAck(identity=row.user_id, schema_version=row.schema_version, updated_at=row.updated_at)


@router.delete("/{user_id}/data", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_data(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    verify_user_access(user_id, current_user)

    if not UserDataService(session).delete(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No data stored for this user")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
