from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from conduit.database import get_db
from conduit.dependencies import PaginationParams, get_optional_viewer, get_viewer
from conduit.schemas import (
    ArticleCreateEnvelope,
    ArticleEnvelope,
    ArticleListResponse,
    ArticleUpdateEnvelope,
    CommentCreateEnvelope,
    CommentEnvelope,
    CommentListResponse,
)
from conduit.services import article_service, comment_service

router = APIRouter(prefix="/api/articles", tags=["articles"])

@router.get("", response_model=ArticleListResponse)
async def list_articles(
    author: str | None = Query(None),
    tag: str | None = Query(None),
    favorited: str | None = Query(None),
    pagination: PaginationParams = Depends(),
    viewer: str | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_articles(
        db,
        viewer,
        author=author,
        tag=tag,
        favorited=favorited,
        offset=pagination.offset,
        limit=pagination.limit,
    )

@router.get("/feed", response_model=ArticleListResponse)
async def get_feed(
    pagination: PaginationParams = Depends(),
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_feed(db, viewer, pagination.offset, pagination.limit)

@router.post("", status_code=201, response_model=ArticleEnvelope)
async def create_article(
    payload: ArticleCreateEnvelope,
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await article_service.create_article(db, payload.article, viewer)}

@router.get("/{slug}", response_model=ArticleEnvelope)
async def get_article(
    slug: str,
    viewer: str | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await article_service.get_article(db, slug, viewer)}

@router.put("/{slug}", response_model=ArticleEnvelope)
async def update_article(
    slug: str,
    payload: ArticleUpdateEnvelope,
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await article_service.update_article(db, payload.article, slug, viewer)}

@router.delete("/{slug}", status_code=204)
async def delete_article(
    slug: str,
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(db, slug, viewer)
    return Response(status_code=204)

@router.post("/{slug}/favorite", response_model=ArticleEnvelope)
async def favorite_article(
    slug: str,
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await article_service.favorite_article(db, slug, viewer)}

@router.delete("/{slug}/favorite", response_model=ArticleEnvelope)
async def unfavorite_article(
    slug: str,
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await article_service.unfavorite_article(db, slug, viewer)}

@router.get("/{slug}/comments", response_model=CommentListResponse)
async def list_comments(
    slug: str,
    viewer: str | None = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"comments": await comment_service.get_comments(db, slug, viewer)}

@router.post("/{slug}/comments", status_code=201, response_model=CommentEnvelope)
async def add_comment(
    slug: str,
    payload: CommentCreateEnvelope,
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"comment": await comment_service.add_comment(db, payload.comment.body, slug, viewer)}

@router.delete("/{slug}/comments/{comment_id}", status_code=204)
async def delete_comment(
    slug: str,
    comment_id: int,
    viewer: str = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, comment_id, viewer)
    return Response(status_code=204)
