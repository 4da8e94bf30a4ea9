"""
Composable filter predicates over articles and comments.

A predicate is a small immutable tree of ``And`` / ``Or`` nodes and leaf
conditions.  Builders in the service layer assemble trees from request
parameters; ``compile_predicate`` turns a tree into a SQLAlchemy boolean
expression against a concrete model.  Keeping the tree as plain values
means tests can compare the shape a builder produced without touching the
database.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import and_, false, or_, select, true
from sqlalchemy.sql.elements import ColumnElement

from conduit.models import Article, Tag, User, follows


class Predicate:
    """Marker base class for every node in a predicate tree."""


@dataclass(frozen=True)
class And(Predicate):
    clauses: tuple[Predicate, ...]

    def __init__(self, *clauses: Predicate) -> None:
        object.__setattr__(self, "clauses", tuple(clauses))


@dataclass(frozen=True)
class Or(Predicate):
    clauses: tuple[Predicate, ...]

    def __init__(self, *clauses: Predicate) -> None:
        object.__setattr__(self, "clauses", tuple(clauses))


# ---------------------------------------------------------------------------
# Leaf conditions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuthorIsDemo(Predicate):
    """The row's author is a demo/seed account."""


@dataclass(frozen=True)
class AuthorIs(Predicate):
    username: str


@dataclass(frozen=True)
class TaggedWith(Predicate):
    name: str


@dataclass(frozen=True)
class FavoritedBy(Predicate):
    username: str


@dataclass(frozen=True)
class AuthorFollowedBy(Predicate):
    user_id: int


# ---------------------------------------------------------------------------
# Combinators
# ---------------------------------------------------------------------------

def visible_to(viewer: str | None) -> Or:
    """
    Return the visibility rule for *viewer*: content authored by a demo
    account, or by the viewer themself when one is present.
    """
    if viewer:
        return Or(AuthorIsDemo(), AuthorIs(viewer))
    return Or(AuthorIsDemo())


def build_article_predicate(
    viewer: str | None = None,
    *,
    author: str | None = None,
    tag: str | None = None,
    favorited: str | None = None,
) -> And:
    """
    Assemble the article listing predicate.

    The visibility rule is always the first conjunct.  An explicit
    *author* filter is ANDed with it as a separate clause rather than
    replacing it, so filtering by a non-demo author other than the viewer
    matches nothing.
    """
    clauses: list[Predicate] = [visible_to(viewer)]
    if author is not None:
        clauses.append(AuthorIs(author))
    if tag is not None:
        clauses.append(TaggedWith(tag))
    if favorited is not None:
        clauses.append(FavoritedBy(favorited))
    return And(*clauses)


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

def compile_predicate(predicate: Predicate, model=Article) -> ColumnElement[bool]:
    """
    Compile *predicate* into a SQLAlchemy expression over *model*.

    Author leaves apply to any model with an ``author`` relationship
    (``Article``, ``Comment``); tag, favorite and follow leaves only make
    sense for ``Article`` and raise ``TypeError`` otherwise.
    """
    if isinstance(predicate, And):
        if not predicate.clauses:
            return true()
        return and_(*(compile_predicate(c, model) for c in predicate.clauses))

    if isinstance(predicate, Or):
        if not predicate.clauses:
            return false()
        return or_(*(compile_predicate(c, model) for c in predicate.clauses))

    if isinstance(predicate, AuthorIsDemo):
        return model.author.has(User.demo.is_(True))

    if isinstance(predicate, AuthorIs):
        return model.author.has(User.username == predicate.username)

    if model is not Article:
        raise TypeError(f"{type(predicate).__name__} cannot be applied to {model.__name__}")

    if isinstance(predicate, TaggedWith):
        return Article.tags.any(Tag.name == predicate.name)

    if isinstance(predicate, FavoritedBy):
        return Article.favorited_by.any(User.username == predicate.username)

    if isinstance(predicate, AuthorFollowedBy):
        followed = select(follows.c.following_id).where(
            follows.c.follower_id == predicate.user_id
        )
        return Article.author_id.in_(followed)

    raise TypeError(f"Unsupported predicate: {predicate!r}")
