from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict

__all__ = ["TokenResponse"]


class TokenResponse(BaseModel):
    """Body shared by the login and PAT endpoints: ``{"token": "..."}``."""

    model_config = ConfigDict(extra="ignore")

    token: str

    @classmethod
    def from_response(cls, resp: httpx.Response) -> "TokenResponse":
        # resp.json() raises on a malformed body; validation raises on a missing token
        return cls.model_validate(resp.json())
