"""
Response mappers: persisted ORM shape -> wire dict, relative to a viewer.

All mappers are total and side-effect free.  They expect the relationships
they read to have been eager-loaded by the calling service (``author`` and
``author.followers`` everywhere, plus ``tags`` and ``favorited_by`` for
articles).
"""
from conduit.models import Article, Comment, User


def profile_to_dict(user: User, viewer: str | None = None) -> dict:
    return {
        "username": user.username,
        "bio": user.bio,
        "image": user.image,
        "following": viewer is not None
        and any(follower.username == viewer for follower in user.followers),
    }


def article_to_dict(article: Article, viewer: str | None = None) -> dict:
    return {
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "body": article.body,
        "tagList": [tag.name for tag in article.tags],
        "createdAt": article.created_at,
        "updatedAt": article.updated_at,
        "favorited": viewer is not None
        and any(user.username == viewer for user in article.favorited_by),
        "favoritesCount": len(article.favorited_by),
        "author": profile_to_dict(article.author, viewer),
    }


def comment_to_dict(comment: Comment, viewer: str | None = None) -> dict:
    return {
        "id": comment.id,
        "createdAt": comment.created_at,
        "updatedAt": comment.updated_at,
        "body": comment.body,
        "author": profile_to_dict(comment.author, viewer),
    }
