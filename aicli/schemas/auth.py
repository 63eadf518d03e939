from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthToken(BaseModel):
    """Credential and identity returned by the OAuth callback."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    user_id: str = Field(alias="userId")
    user_email: str = Field(alias="userEmail")
    provider: Literal["google", "github"]
    user_name: Optional[str] = Field(default=None, alias="userName")
    user_image: Optional[str] = Field(default=None, alias="userImage")
    user_role: Optional[str] = Field(default=None, alias="userRole")
    username: Optional[str] = None
    expires_at: Optional[int] = Field(default=None, alias="expiresAt")  # JWT exp, seconds
