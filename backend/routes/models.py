"""Pydantic request models for API endpoints."""

from pydantic import BaseModel


class ProvisionTrivia(BaseModel):
    category: str
    topic: str
    count: int | None = None


class ProvisionDailyMission(BaseModel):
    date: str  # DD-MM-YYYY
    guess_topic: str
    no_cap_topic: str
    count: int | None = None

