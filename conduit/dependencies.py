from fastapi import Header, Query

from conduit.exceptions import Unauthorized
from conduit.security import decode_token, parse_authorization_header
from conduit.services.article_service import normalize_pagination


class PaginationParams:
    """
    FastAPI dependency that parses ``offset`` / ``limit`` query parameters.

    Both arrive as raw strings so that malformed values fall back to the
    defaults instead of producing a 422; see ``normalize_pagination``.
    """

    def __init__(
        self,
        offset: str | None = Query(None, description="Number of articles to skip."),
        limit: str | None = Query(None, description="Number of articles to return."),
    ) -> None:
        self.offset, self.limit = normalize_pagination(offset, limit)


async def get_optional_viewer(
    authorization: str | None = Header(None),
) -> str | None:
    """Username of the requester, or None for anonymous requests."""
    token = parse_authorization_header(authorization)
    if token is None:
        return None
    return decode_token(token)


async def get_viewer(
    authorization: str | None = Header(None),
) -> str:
    """Username of the requester; raises ``Unauthorized`` when absent."""
    token = parse_authorization_header(authorization)
    if token is None:
        raise Unauthorized()
    return decode_token(token)
