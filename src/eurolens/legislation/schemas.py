"""Projections of EP Open Data records served to the web client."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from eurolens.schemas import CamelModel

T = TypeVar("T")


class LastActivity(CamelModel):
    date: str
    type: str


class VotingResult(CamelModel):
    favor: int = 0
    against: int = 0
    abstention: int = 0

    @property
    def has_votes(self) -> bool:
        return (self.favor + self.against + self.abstention) > 0


class LegislativeProcedure(CamelModel):
    id: str
    reference: str
    title: str
    summary: str | None = None
    type: str
    subjects: list[str] = []
    status: str
    last_activity: LastActivity | None = None
    voting_result: VotingResult | None = None
    source_url: str | None = None


class TimelineEvent(CamelModel):
    id: str
    date: str
    type: str
    title: str
    description: str | None = None


class ProcedureDetail(CamelModel):
    reference: str
    title: str
    summary: str | None = None
    type: str
    status: str
    last_activity: LastActivity | None = None
    timeline: list[TimelineEvent] = []
    source_url: str | None = None


class PlenarySession(CamelModel):
    id: str
    title: str
    start_date: datetime
    end_date: datetime
    type: str = "Plenary Session"


@dataclass
class FetchResult(Generic[T]):
    """Page data plus a user-facing error when the primary listing failed."""

    data: T
    error: str | None = None


# --- Responses ---


class ProceduresPage(CamelModel):
    procedures: list[LegislativeProcedure]
    error: str | None = None


class SessionsPage(CamelModel):
    sessions: list[PlenarySession]
    error: str | None = None


class VotesResponse(CamelModel):
    votes: list[dict] = []
