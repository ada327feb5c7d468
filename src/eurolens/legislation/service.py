"""Legislative data aggregation: the page-level views built from EP Open Data.

A failing primary listing surfaces as ``FetchResult.error`` with no data. A
failing enrichment call (procedure detail, meeting decisions, documents) is
logged and the affected item degrades to its lightly derived fields.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from eurolens.legislation import references as refs
from eurolens.legislation.client import EuroparlClient, EuroparlError
from eurolens.legislation.schemas import (
    FetchResult,
    LastActivity,
    LegislativeProcedure,
    PlenarySession,
    ProcedureDetail,
    TimelineEvent,
    VotingResult,
)

logger = structlog.get_logger()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _is_plenary(meeting: dict[str, Any]) -> bool:
    return "PLENARY" in str(meeting.get("had_activity_type") or "")


def _meeting_start(meeting: dict[str, Any]) -> datetime | None:
    return refs.parse_date(meeting.get("activity_start_date") or meeting.get("activity_date"))


def _first_str(value: Any) -> str | None:
    if isinstance(value, list):
        value = next((v for v in value if isinstance(v, str)), None)
    return value if isinstance(value, str) and value else None


class LegislationService:
    """Builds the in-progress, recently-decided and session views."""

    def __init__(
        self,
        client: EuroparlClient,
        list_limit: int = 30,
        enrich_limit: int = 6,
        decisions_window_days: int = 180,
        recent_meetings: int = 5,
        max_decided: int = 20,
    ) -> None:
        self.client = client
        self.list_limit = list_limit
        self.enrich_limit = enrich_limit
        self.decisions_window = timedelta(days=decisions_window_days)
        self.recent_meetings = recent_meetings
        self.max_decided = max_decided

    # ------------------------------------------------------------------
    # In progress
    # ------------------------------------------------------------------

    async def get_in_progress_procedures(self, now: datetime | None = None) -> FetchResult[list[LegislativeProcedure]]:
        """Current and previous year's procedures, the first few fully enriched."""
        year = (now or _now()).year
        try:
            current, previous = await asyncio.gather(
                self.client.list_procedures(year, self.list_limit),
                self.client.list_procedures(year - 1, self.list_limit),
            )
        except EuroparlError as e:
            logger.warning("procedures_listing_failed", error=str(e))
            return FetchResult(data=[], error=str(e))

        listed = [*current, *previous]
        head, tail = listed[: self.enrich_limit], listed[self.enrich_limit :]
        details = await asyncio.gather(*(self._procedure_detail(p) for p in head))

        procedures: list[LegislativeProcedure] = []
        for basic, detail in zip(head, details):
            if detail is not None and refs.is_completed_stage(detail.get("current_stage")):
                continue
            procedures.append(self._to_procedure(basic, detail))
        procedures.extend(self._to_procedure(basic, None) for basic in tail)
        return FetchResult(data=procedures)

    async def _procedure_detail(self, basic: dict[str, Any]) -> dict[str, Any] | None:
        proc_id = basic.get("process_id") or refs.last_segment(basic.get("id"))
        if not proc_id:
            return None
        try:
            return await self.client.get_procedure(proc_id)
        except EuroparlError as e:
            logger.warning("procedure_enrichment_failed", procedure_id=proc_id, error=str(e))
            return None

    @staticmethod
    def _to_procedure(basic: dict[str, Any], detail: dict[str, Any] | None) -> LegislativeProcedure:
        label = basic.get("label") if isinstance(basic.get("label"), str) else None
        identifier = basic.get("process_id") or basic.get("id") or ""
        reference = refs.infer_reference(label, identifier)

        if detail is None:
            return LegislativeProcedure(
                id=identifier,
                reference=reference,
                title=label or "Untitled Procedure",
                type=refs.procedure_type_label(basic.get("process_type")),
                status="Active",
                source_url=refs.procedure_source_url(reference) if refs.is_procedure_reference(reference) else None,
            )

        activity = refs.latest_activity(detail.get("consists_of"))
        return LegislativeProcedure(
            id=identifier,
            reference=reference,
            title=refs.get_localized_label(detail.get("process_title")) or label or "Untitled Procedure",
            summary=refs.get_localized_label(detail.get("process_summary")) or None,
            type=refs.procedure_type_label(basic.get("process_type") or detail.get("process_type")),
            subjects=refs.extract_committees(detail.get("had_participation")),
            status=refs.stage_label(detail.get("current_stage"), missing="Active"),
            last_activity=LastActivity(**activity) if activity else None,
            source_url=refs.procedure_source_url(reference) if refs.is_procedure_reference(reference) else None,
        )

    # ------------------------------------------------------------------
    # Recently decided
    # ------------------------------------------------------------------

    async def get_recently_decided_procedures(
        self, now: datetime | None = None,
    ) -> FetchResult[list[LegislativeProcedure]]:
        """Adopted texts from the most recent plenary sittings, newest first."""
        now = now or _now()
        try:
            current, previous = await asyncio.gather(
                self.client.list_meetings(now.year),
                self.client.list_meetings(now.year - 1),
            )
        except EuroparlError as e:
            logger.warning("meetings_listing_failed", error=str(e))
            return FetchResult(data=[], error=str(e))

        cutoff = now - self.decisions_window
        dated: list[tuple[datetime, dict[str, Any]]] = []
        for meeting in [*current, *previous]:
            start = _meeting_start(meeting)
            if _is_plenary(meeting) and start is not None and cutoff <= start <= now:
                dated.append((start, meeting))
        dated.sort(key=lambda pair: pair[0], reverse=True)
        recent = dated[: self.recent_meetings]

        decision_lists = await asyncio.gather(*(self._meeting_decisions(m) for _, m in recent))

        by_reference: dict[str, LegislativeProcedure] = {}
        for (start, _meeting), decisions in zip(recent, decision_lists):
            for decision in decisions:
                if not self._is_adopted(decision):
                    continue
                candidate = self._decision_to_procedure(decision, start)
                existing = by_reference.get(candidate.reference)
                if existing is None or self._prefer(candidate, existing):
                    by_reference[candidate.reference] = candidate

        decided = sorted(
            by_reference.values(),
            key=lambda p: p.last_activity.date if p.last_activity else "",
            reverse=True,
        )
        return FetchResult(data=decided[: self.max_decided])

    async def _meeting_decisions(self, meeting: dict[str, Any]) -> list[dict[str, Any]]:
        meeting_id = meeting.get("activity_id") or refs.last_segment(meeting.get("id"))
        try:
            return await self.client.get_meeting_decisions(meeting_id)
        except EuroparlError as e:
            logger.warning("meeting_decisions_failed", meeting_id=meeting_id, error=str(e))
            return []

    @staticmethod
    def _tally(decision: dict[str, Any]) -> VotingResult:
        return VotingResult(
            favor=_int(decision.get("number_of_votes_favor")),
            against=_int(decision.get("number_of_votes_against")),
            abstention=_int(decision.get("number_of_votes_abstention")),
        )

    @classmethod
    def _is_adopted(cls, decision: dict[str, Any]) -> bool:
        outcome = decision.get("had_decision_outcome")
        if outcome:
            return refs.last_segment(str(outcome)).upper() == "ADOPTED"
        return cls._tally(decision).favor > 0

    @classmethod
    def _decision_to_procedure(cls, decision: dict[str, Any], meeting_start: datetime) -> LegislativeProcedure:
        label = refs.get_localized_label(decision.get("activity_label")) or None
        identifier = (
            _first_str(decision.get("decided_on_a_realization_of"))
            or _first_str(decision.get("forms_part_of"))
            or decision.get("activity_id")
            or decision.get("id")
            or ""
        )
        reference = refs.infer_reference(label, identifier)
        decided_at = refs.parse_date(decision.get("activity_date")) or meeting_start
        return LegislativeProcedure(
            id=decision.get("activity_id") or decision.get("id") or reference,
            reference=reference,
            title=label or f"Procedure {reference}",
            type=refs.document_type_label(reference),
            status="Adopted",
            last_activity=LastActivity(date=decided_at.astimezone(timezone.utc).isoformat(), type="Voted"),
            voting_result=cls._tally(decision),
            source_url=refs.procedure_source_url(reference),
        )

    @staticmethod
    def _prefer(candidate: LegislativeProcedure, existing: LegislativeProcedure) -> bool:
        """Does a later decision on the same reference replace the earlier one?"""
        new_votes = candidate.voting_result is not None and candidate.voting_result.has_votes
        old_votes = existing.voting_result is not None and existing.voting_result.has_votes
        if new_votes != old_votes:
            return new_votes
        new_date = candidate.last_activity.date if candidate.last_activity else ""
        old_date = existing.last_activity.date if existing.last_activity else ""
        return new_date >= old_date

    # ------------------------------------------------------------------
    # Plenary sessions
    # ------------------------------------------------------------------

    async def get_upcoming_plenary_sessions(self, now: datetime | None = None) -> FetchResult[list[PlenarySession]]:
        """Plenary sittings starting now or later, soonest first."""
        now = now or _now()
        try:
            meetings = await self.client.list_meetings(now.year)
        except EuroparlError as e:
            logger.warning("meetings_listing_failed", error=str(e))
            return FetchResult(data=[], error=str(e))

        sessions = []
        for meeting in meetings:
            start = _meeting_start(meeting)
            if not _is_plenary(meeting) or start is None or start < now:
                continue
            end = refs.parse_date(meeting.get("activity_end_date")) or start
            sessions.append(PlenarySession(
                id=meeting.get("activity_id") or meeting.get("id") or "",
                title=refs.get_localized_label(meeting.get("activity_label")),
                start_date=start,
                end_date=end,
            ))
        sessions.sort(key=lambda s: s.start_date)
        return FetchResult(data=sessions)

    # ------------------------------------------------------------------
    # Single procedure
    # ------------------------------------------------------------------

    async def get_procedure_by_reference(self, reference: str, now: datetime | None = None) -> ProcedureDetail:
        """Resolve a reference against upstream, or return a placeholder.

        Document-style references are looked up as plenary documents,
        procedure-style ones as procedures; other shapes try both. The
        placeholder has no source URL and an empty timeline.
        """
        detail: ProcedureDetail | None
        if refs.is_document_reference(reference):
            detail = await self._document_detail(reference, now)
        elif refs.is_procedure_reference(reference):
            detail = await self._procedure_file(reference)
        else:
            detail = await self._document_detail(reference, now) or await self._procedure_file(reference)

        if detail is None:
            return ProcedureDetail(
                reference=reference,
                title=f"Procedure {reference}",
                type=refs.document_type_label(reference),
                status="In Progress",
            )
        return detail

    async def _document_detail(self, reference: str, now: datetime | None) -> ProcedureDetail | None:
        doc_id = refs.document_reference_to_id(reference)
        if doc_id is None:
            return None
        try:
            doc = await self.client.get_plenary_document(doc_id)
        except EuroparlError as e:
            logger.warning("document_lookup_failed", reference=reference, error=str(e))
            return None
        if not doc or not isinstance(doc.get("is_realized_by"), list) or not doc["is_realized_by"]:
            return None

        expressions = [e for e in doc["is_realized_by"] if isinstance(e, dict)]
        english = next((e for e in expressions if "/ENG" in str(e.get("language", ""))), None)
        title = None
        if english is not None and isinstance(english.get("title"), dict):
            title = english["title"].get("en")
        if not title and expressions and isinstance(expressions[0].get("title"), dict):
            title = next(iter(expressions[0]["title"].values()), None)
        if not title:
            return None

        return ProcedureDetail(
            reference=reference,
            title=title,
            type=refs.document_type_label(reference),
            status="Adopted",
            last_activity=LastActivity(date=(now or _now()).isoformat(), type="Voted"),
            source_url=refs.procedure_source_url(reference),
        )

    async def _procedure_file(self, reference: str) -> ProcedureDetail | None:
        proc_id = refs.procedure_reference_to_id(reference)
        try:
            proc = await self.client.get_procedure(proc_id)
        except EuroparlError as e:
            logger.warning("procedure_lookup_failed", reference=reference, error=str(e))
            return None
        if not proc:
            return None

        timeline = refs.build_timeline(proc.get("consists_of"))
        return ProcedureDetail(
            reference=reference,
            title=refs.get_localized_label(proc.get("process_title")) or reference,
            summary=refs.get_localized_label(proc.get("process_summary")) or None,
            type=refs.document_type_label(reference),
            status=refs.stage_label(proc.get("current_stage")),
            last_activity=LastActivity(date=timeline[0]["date"], type=timeline[0]["type"]) if timeline else None,
            timeline=[TimelineEvent(**event) for event in timeline],
            source_url=refs.procedure_source_url(reference),
        )
