from __future__ import annotations

import secrets
from typing import Callable

from ..core.constants import CODE_TOKEN_BYTES


class CodeGenerator:
    """Produces unguessable session codes from the OS CSPRNG.

    Uniqueness is enforced by the store on insert, not here.
    """

    def __init__(
        self,
        *,
        nbytes: int = CODE_TOKEN_BYTES,
        token_factory: Callable[[int], str] = secrets.token_urlsafe,
    ):
        if nbytes < 16:
            raise ValueError("Session codes need at least 128 bits of entropy")
        self._nbytes = int(nbytes)
        self._token_factory = token_factory

    def generate(self) -> str:
        return self._token_factory(self._nbytes)
