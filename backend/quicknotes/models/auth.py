from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserIdentity(BaseModel):
    """Identity issued by the provider. Read-only for the application."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: Optional[str] = None
    photo_url: Optional[str] = None
    display_name: Optional[str] = None


class SignInResult(BaseModel):
    identity: UserIdentity
    id_token: str


class FederatedCredential(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_id: str = "google.com"
    id_token: str
    subject: str
    email: str
    email_verified: bool = False
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
