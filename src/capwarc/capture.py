"""Captured HTTP transactions, as handed over by a capture source.

A capture source is any iterable or async iterable of CapturedRequest
objects, or an object with an ``iter_requests()`` method returning one.
Anything with the same attributes works in place of these classes.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

Body = Union[bytes, str]


@dataclass
class CapturedResponse:
    status: int
    headers: Any = field(default_factory=dict)
    body: Optional[Callable[[], Awaitable[Body]]] = None
    status_text: Optional[str] = None


@dataclass
class CapturedRequest:
    url: str
    method: str = "GET"
    headers: Any = field(default_factory=dict)
    post_data: Optional[Body] = None
    response: Optional[CapturedResponse] = None


def static_body(data: Body) -> Callable[[], Awaitable[Body]]:
    """Return a body accessor that yields ``data``."""

    async def body() -> Body:
        return data

    return body
