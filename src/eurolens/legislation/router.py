"""Legislative data endpoints backed by EP Open Data."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from eurolens.dependencies import get_legislation_service
from eurolens.legislation.schemas import ProcedureDetail, ProceduresPage, SessionsPage, VotesResponse
from eurolens.legislation.service import LegislationService

router = APIRouter(prefix="/api", tags=["Legislation"])


@router.get("/procedures/in-progress", response_model=ProceduresPage, response_model_exclude_none=True)
async def in_progress(service: LegislationService = Depends(get_legislation_service)) -> ProceduresPage:
    """Procedures still moving through Parliament."""
    result = await service.get_in_progress_procedures()
    return ProceduresPage(procedures=result.data, error=result.error)


@router.get("/procedures/recently-decided", response_model=ProceduresPage, response_model_exclude_none=True)
async def recently_decided(service: LegislationService = Depends(get_legislation_service)) -> ProceduresPage:
    """Texts adopted at recent plenary sittings, with vote tallies."""
    result = await service.get_recently_decided_procedures()
    return ProceduresPage(procedures=result.data, error=result.error)


@router.get("/sessions/upcoming", response_model=SessionsPage, response_model_exclude_none=True)
async def upcoming_sessions(service: LegislationService = Depends(get_legislation_service)) -> SessionsPage:
    """Plenary sittings that have not started yet."""
    result = await service.get_upcoming_plenary_sessions()
    return SessionsPage(sessions=result.data, error=result.error)


@router.get("/procedure/{reference:path}/votes", response_model=VotesResponse)
async def procedure_votes(reference: str) -> VotesResponse:
    """Per-MEP roll-call votes. No upstream source yet, so always empty."""
    return VotesResponse(votes=[])


@router.get("/procedure/{reference:path}", response_model=ProcedureDetail, response_model_exclude_none=True)
async def procedure(
    reference: str,
    service: LegislationService = Depends(get_legislation_service),
) -> ProcedureDetail:
    """One procedure by reference; unknown references get a placeholder."""
    return await service.get_procedure_by_reference(reference)
