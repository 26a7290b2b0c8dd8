"""Request bodies for the REST endpoints."""

from pydantic import BaseModel


class CredentialsRequest(BaseModel):
    email: str
    password: str


class SubscriptionRequest(BaseModel):
    ticker: str
