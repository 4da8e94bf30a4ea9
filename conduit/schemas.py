from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


# --- Profile ---

class ProfileResponse(BaseModel):
    username: str
    bio: str | None = None
    image: str | None = None
    following: bool = False


class ProfileEnvelope(BaseModel):
    profile: ProfileResponse


# --- Comment ---

class CommentCreate(BaseModel):
    # Blank bodies are rejected by the service with a field-keyed error.
    body: str | None = None


class CommentCreateEnvelope(BaseModel):
    comment: CommentCreate


class CommentResponse(BaseModel):
    id: int
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    body: str
    author: ProfileResponse
    model_config = ConfigDict(populate_by_name=True)


class CommentEnvelope(BaseModel):
    comment: CommentResponse


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]


# --- Article ---

class ArticleCreate(BaseModel):
    """
    Payload for both create and update.

    Every field is optional at the schema level: create validates
    title/description/body itself so each missing field is reported under
    its own key, and update only patches the fields that were supplied.
    """
    title: str | None = None
    description: str | None = None
    body: str | None = None
    tag_list: list[str] | None = Field(None, alias="tagList")
    model_config = ConfigDict(populate_by_name=True)


class ArticleUpdate(ArticleCreate):
    pass


class ArticleCreateEnvelope(BaseModel):
    article: ArticleCreate


class ArticleUpdateEnvelope(BaseModel):
    article: ArticleUpdate


class ArticleResponse(BaseModel):
    slug: str
    title: str
    description: str
    body: str
    tag_list: list[str] = Field(alias="tagList")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    favorited: bool
    favorites_count: int = Field(alias="favoritesCount")
    author: ProfileResponse
    model_config = ConfigDict(populate_by_name=True)


class ArticleEnvelope(BaseModel):
    article: ArticleResponse


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    # Size of the returned page, not the total number of matches.
    articles_count: int = Field(alias="articlesCount")
    model_config = ConfigDict(populate_by_name=True)


# --- Tags ---

class TagListResponse(BaseModel):
    tags: list[str]
