from __future__ import annotations

from lession.core.errors import InvalidPageTokenError


def parse_offset_token(token: str | None) -> int:
    # Page tokens are decimal offsets; empty means the first page.
    if token is None or not token.strip():
        return 0
    try:
        offset = int(token.strip())
    except ValueError:
        raise InvalidPageTokenError(token)
    if offset < 0:
        raise InvalidPageTokenError(token)
    return offset


def next_offset_token(*, offset: int, page_size: int, fetched: int) -> str:
    # Callers fetch page_size + 1 rows; the extra row only signals another page.
    if fetched > page_size:
        return str(offset + page_size)
    return ""
