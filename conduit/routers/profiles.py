from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from conduit.database import get_db
from conduit.dependencies import get_optional_viewer, get_viewer
from conduit.schemas import ProfileEnvelope
from conduit.services import profile_service

router = APIRouter(prefix="/api/profiles", tags=["profiles"])

@router.get("/{username}", response_model=ProfileEnvelope)
async def get_profile(
    username: str,
    viewer: str | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"profile": await profile_service.get_profile(db, username, viewer)}

@router.post("/{username}/follow", response_model=ProfileEnvelope)
async def follow_user(
    username: str,
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"profile": await profile_service.follow_user(db, username, viewer)}

@router.delete("/{username}/follow", response_model=ProfileEnvelope)
async def unfollow_user(
    username: str,
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"profile": await profile_service.unfollow_user(db, username, viewer)}
