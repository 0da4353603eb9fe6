from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from bookclub.schemas.member import MemberCreate, MemberOut
from bookclub.services.sync_engine import SyncEngine, get_sync_engine

router = APIRouter(prefix="/members", tags=["members"])


@router.get("", response_model=list[MemberOut])
def list_members(engine: SyncEngine = Depends(get_sync_engine)) -> list[MemberOut]:
    """Members in the order they joined."""
    return list(engine.snapshot().members)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=MemberOut)
async def create_member(
    payload: MemberCreate,
    engine: SyncEngine = Depends(get_sync_engine),
) -> MemberOut:
    return await engine.add_member(payload)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_member(
    member_id: str,
    engine: SyncEngine = Depends(get_sync_engine),
) -> Response:
    await engine.delete_member(member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
