"""
Quiz session identity

A quiz session is nothing more than an opaque token kept in a cookie.
Attempts carry the token; there is no server-side session record.
"""
import logging
import secrets
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, Response

from rulequiz.config import settings

logger = logging.getLogger(__name__)


class _UUID7Generator:
    """
    Time-ordered UUID version 7 (RFC 9562)

    48-bit unix millisecond timestamp, then a 12-bit counter in rand_a
    that keeps ids generated within the same millisecond increasing,
    then 62 random bits.
    """

    _COUNTER_MAX = 0xFFF

    def __init__(self):
        self._lock = threading.Lock()
        self._last_ms = -1
        self._counter = 0

    def __call__(self) -> uuid.UUID:
        with self._lock:
            now_ms = time.time_ns() // 1_000_000
            if now_ms > self._last_ms:
                self._last_ms = now_ms
                self._counter = secrets.randbits(11)  # leave headroom for increments
            else:
                self._counter += 1
                if self._counter > self._COUNTER_MAX:
                    # counter exhausted: borrow the next millisecond
                    self._last_ms += 1
                    self._counter = 0
            timestamp_ms = self._last_ms
            counter = self._counter

        value = (timestamp_ms & 0xFFFF_FFFF_FFFF) << 80
        value |= 0x7 << 76
        value |= counter << 64
        value |= 0b10 << 62
        value |= secrets.randbits(62)
        return uuid.UUID(int=value)


_uuid7 = _UUID7Generator()


def new_session_id() -> str:
    """Generate a fresh time-ordered session token"""
    return str(_uuid7())


def new_attempt_id() -> str:
    """Attempt ids share the time-ordered generator for index locality"""
    return str(_uuid7())


def canonical_session_id(value: Optional[str]) -> Optional[str]:
    """Lower-case hyphenated form of a UUID token, or None if it is not one"""
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except (ValueError, TypeError, AttributeError):
        return None


def is_valid_session_id(value: Optional[str]) -> bool:
    return canonical_session_id(value) is not None


@dataclass(frozen=True)
class QuizSession:
    """
    Resolved quiz session

    is_new is set whenever the cookie has to be (re)issued: for a freshly
    minted token and for a valid token sent in a non-canonical form.
    """
    session_id: str
    is_new: bool = False


def resolve_session(cookie_value: Optional[str]) -> QuizSession:
    """
    Reuse a valid session cookie or mint a new token

    Never fails: absent, empty or malformed cookies produce a fresh session.
    Braced, URN, upper-case or unhyphenated UUIDs are kept but rewritten to
    the canonical 36 character form.
    """
    canonical = canonical_session_id(cookie_value)
    if canonical is not None:
        if canonical != cookie_value:
            logger.debug(f"Normalized quiz session {cookie_value!r} to {canonical}")
            return QuizSession(session_id=canonical, is_new=True)
        logger.debug(f"Found existing quiz session: {cookie_value}")
        return QuizSession(session_id=canonical)

    session = QuizSession(session_id=new_session_id(), is_new=True)
    if cookie_value:
        logger.debug(f"Invalid session ID, created new session {session.session_id}")
    else:
        logger.debug(f"No session cookie found, created new session {session.session_id}")
    return session


def get_quiz_session(request: Request) -> QuizSession:
    """FastAPI dependency: session resolved by the middleware, or from the cookie"""
    session = getattr(request.state, "quiz_session", None)
    if session is None:
        session = resolve_session(request.cookies.get(settings.QUIZ_SESSION_COOKIE_NAME))
        request.state.quiz_session = session
    return session


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.QUIZ_SESSION_COOKIE_NAME,
        value=session_id,
        max_age=settings.QUIZ_SESSION_MAX_AGE_HOURS * 3600,
        path="/",
        secure=settings.QUIZ_SESSION_COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.QUIZ_SESSION_COOKIE_NAME,
        path="/",
        secure=settings.QUIZ_SESSION_COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )
