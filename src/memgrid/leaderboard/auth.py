from __future__ import annotations

import secrets
from dataclasses import dataclass

import structlog

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class AnonymousUser:
    uid: str


class AnonymousAuth:
    """
    Anonymous identity provider.

    The first sign-in mints an opaque uid; later calls reuse it so all
    scores from this client land under the same personal-best record.
    """

    def __init__(self, *, uid: str | None = None) -> None:
        self._user = AnonymousUser(uid=uid) if uid else None

    def current_user(self) -> AnonymousUser | None:
        return self._user

    async def sign_in_anonymously(self) -> AnonymousUser:
        if self._user is None:
            self._user = AnonymousUser(uid=secrets.token_hex(14))
            log.info("auth.signed_in_anonymously", uid=self._user.uid)
        return self._user
