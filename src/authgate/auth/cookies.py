"""Auth cookies — collected during a GraphQL request, applied to its response.

Learn: ariadne builds the HTTP response itself, so resolvers never see a
Response object. Instead they record cookie operations on a
ResponseCookies instance that lives in the GraphQL context; the HTTP
route applies them once execution has finished. A resolver that fails
records nothing, so failed logins never touch the client's cookies.
"""

from dataclasses import dataclass
from typing import Optional

from starlette.responses import Response

from authgate.config import settings

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


@dataclass
class _CookieOp:
    name: str
    value: Optional[str]  # None → delete
    max_age: Optional[int] = None


class ResponseCookies:
    """Pending Set-Cookie operations for one response."""

    def __init__(self):
        self._ops: list[_CookieOp] = []

    def set(self, name: str, value: str, max_age: int) -> None:
        self._ops.append(_CookieOp(name=name, value=value, max_age=max_age))

    def delete(self, name: str) -> None:
        self._ops.append(_CookieOp(name=name, value=None))

    @property
    def names(self) -> list[str]:
        return [op.name for op in self._ops]

    def __len__(self) -> int:
        return len(self._ops)

    def apply(self, response: Response) -> Response:
        for op in self._ops:
            if op.value is None:
                response.delete_cookie(
                    op.name,
                    path="/",
                    secure=settings.cookie_secure,
                    httponly=True,
                    samesite=settings.cookie_samesite,
                )
            else:
                response.set_cookie(
                    op.name,
                    op.value,
                    max_age=op.max_age,
                    path="/",
                    secure=settings.cookie_secure,
                    httponly=True,
                    samesite=settings.cookie_samesite,
                )
        return response
