from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from conduit.database import get_db
from conduit.dependencies import get_optional_viewer
from conduit.schemas import TagListResponse
from conduit.services import tag_service

router = APIRouter(prefix="/api/tags", tags=["tags"])

@router.get("", response_model=TagListResponse)
async def list_tags(
    viewer: str | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"tags": await tag_service.get_tags(db, viewer)}
