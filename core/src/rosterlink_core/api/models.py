from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LookupRequest(BaseModel):
    email: str | None = None


class UpdateProfileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str | None = None
    member_id: str | None = Field(default=None, alias="memberId")
    updates: dict[str, Any] | None = None


class ApiResponse(BaseModel):
    success: bool
    message: str | None = None


class LookupResponse(ApiResponse):
    model_config = ConfigDict(populate_by_name=True)

    redirect_url: str = Field(alias="redirectUrl")


class ApiError(BaseModel):
    success: bool = False
    error: str


def fail(message: str) -> dict[str, Any]:
    return ApiError(error=message).model_dump(mode="json")
