"""Page-level views assembled from canned EP Open Data responses."""

from datetime import datetime, timezone

import pytest

from eurolens.legislation.references import PROCEDURE_FILE_URL

NOW = datetime(2025, 3, 1, tzinfo=timezone.utc)

PLENARY = "def/ep-activities/PLENARY_SITTING"


def procedure_listing(*items):
    return {"data": list(items)}


def listed(number, label=None, proc_type="COD", year=2025):
    proc_id = f"{year}-{number}"
    return {
        "id": f"eli/dl/proc/{proc_id}",
        "process_id": proc_id,
        "label": label if label is not None else f"{year}/{number}({proc_type})",
        "process_type": f"def/ep-procedure-types/{proc_type}",
    }


def detail(title, stage="RDG1", activities=None, committees=None):
    return {"data": [{
        "process_title": {"en": title},
        "current_stage": f"def/ep-procedure-stages/{stage}",
        "consists_of": activities or [],
        "had_participation": [
            {"participation_role": "def/ep-roles/COMMITTEE_RESPONSIBLE", "had_participant_organization": [f"org/{c}"]}
            for c in committees or []
        ],
    }]}


class TestInProgress:
    @pytest.mark.asyncio
    async def test_enriches_and_drops_completed(self, europarl, legislation):
        europarl.add("/procedures", procedure_listing(listed("0001"), listed("0002")), year=2025)
        europarl.add("/procedures", procedure_listing(listed("0099", year=2024)), year=2024)
        europarl.add("/procedures/2025-0001", detail(
            "Clean air",
            activities=[{"activity_date": "2025-02-01", "had_activity_type": "def/ep-activities/COMMITTEE_VOTE"}],
            committees=["ENVI"],
        ))
        europarl.add("/procedures/2025-0002", detail("Done deal", stage="FIN"))
        europarl.add("/procedures/2024-0099", detail("Older file", stage="RDG2"))

        result = await legislation.get_in_progress_procedures(NOW)

        assert result.error is None
        assert [p.reference for p in result.data] == ["2025/0001(COD)", "2024/0099(COD)"]
        first = result.data[0]
        assert first.title == "Clean air"
        assert first.type == "Codecision"
        assert first.status == "1st Reading"
        assert first.subjects == ["ENVI"]
        assert first.last_activity.date == "2025-02-01"
        assert first.last_activity.type == "COMMITTEE VOTE"
        assert first.source_url == PROCEDURE_FILE_URL + "2025%2F0001%28COD%29"
        assert result.data[1].status == "2nd Reading"

    @pytest.mark.asyncio
    async def test_only_head_is_enriched(self, europarl, legislation):
        legislation.enrich_limit = 1
        europarl.add("/procedures", procedure_listing(listed("0001"), listed("0002", label="")), year=2025)
        europarl.add("/procedures", procedure_listing(), year=2024)
        europarl.add("/procedures/2025-0001", detail("Clean air"))

        result = await legislation.get_in_progress_procedures(NOW)

        light = result.data[1]
        assert light.status == "Active"
        assert light.title == "Untitled Procedure"
        assert europarl.calls_to("/procedures/2025-0002") == 0

    @pytest.mark.asyncio
    async def test_enrichment_failure_degrades(self, europarl, legislation):
        europarl.add("/procedures", procedure_listing(listed("0001", label="Clean air 2025/0001(COD)")), year=2025)
        europarl.add("/procedures", procedure_listing(), year=2024)
        europarl.add("/procedures/2025-0001", {"error": "boom"}, status=500)

        result = await legislation.get_in_progress_procedures(NOW)

        assert result.error is None
        (procedure,) = result.data
        assert procedure.reference == "2025/0001(COD)"
        assert procedure.title == "Clean air 2025/0001(COD)"
        assert procedure.status == "Active"

    @pytest.mark.asyncio
    async def test_listing_failure_is_reported(self, europarl, legislation):
        europarl.add("/procedures", {"error": "down"}, year=2025, status=503)
        europarl.add("/procedures", procedure_listing(), year=2024)

        result = await legislation.get_in_progress_procedures(NOW)

        assert result.data == []
        assert "503" in result.error

    @pytest.mark.asyncio
    async def test_repeat_reads_are_cached(self, europarl, legislation):
        europarl.add("/procedures", procedure_listing(listed("0001")), year=2025)
        europarl.add("/procedures", procedure_listing(), year=2024)
        europarl.add("/procedures/2025-0001", detail("Clean air"))

        await legislation.get_in_progress_procedures(NOW)
        await legislation.get_in_progress_procedures(NOW)

        assert europarl.calls_to("/procedures") == 2  # one per year
        assert europarl.calls_to("/procedures/2025-0001") == 1

    @pytest.mark.asyncio
    async def test_graph_envelope(self, europarl, legislation):
        europarl.add("/procedures", {"@graph": [listed("0001", label="Untagged title")]}, year=2025)
        europarl.add("/procedures", procedure_listing(), year=2024)

        result = await legislation.get_in_progress_procedures(NOW)

        assert result.data[0].reference == "2025/0001"
        assert result.data[0].source_url is None


def meeting(meeting_id, start, activity_type=PLENARY, end=None):
    item = {"activity_id": meeting_id, "had_activity_type": activity_type, "activity_start_date": start}
    if end:
        item["activity_end_date"] = end
    item["activity_label"] = {"en": f"Sitting {meeting_id}"}
    return item


def decision(label, date, outcome="ADOPTED", favor=0, against=0, abstention=0, **extra):
    item = {
        "activity_id": f"VOT-{label[:6]}-{date}",
        "activity_label": {"en": label},
        "activity_date": date,
        "number_of_votes_favor": favor,
        "number_of_votes_against": against,
        "number_of_votes_abstention": abstention,
        **extra,
    }
    if outcome is not None:
        item["had_decision_outcome"] = f"def/ep-decision-outcomes/{outcome}"
    return item


class TestRecentlyDecided:
    @pytest.mark.asyncio
    async def test_adopted_texts_with_tallies(self, europarl, legislation):
        europarl.add("/meetings", {"data": [
            meeting("MTG-PL-2025-02-10", "2025-02-10T17:00:00+01:00"),
            meeting("MTG-COMM-2025-02-11", "2025-02-11T09:00:00+01:00", "def/ep-activities/COMMITTEE_MEETING"),
            meeting("MTG-PL-2025-04-01", "2025-04-01T17:00:00+02:00"),
        ]}, year=2025)
        europarl.add("/meetings", {"data": [
            meeting("MTG-PL-2024-01-15", "2024-01-15T17:00:00+01:00"),
        ]}, year=2024)
        europarl.add("/meetings/MTG-PL-2025-02-10/decisions", {"data": [
            decision("A10-0012/2025 - Clean air", "2025-02-11", favor=400, against=100, abstention=20),
            decision("A10-0012/2025 - Clean air (corrigendum)", "2025-02-12"),
            decision("B10-0100/2025 - Motion", "2025-02-11", outcome="REJECTED", favor=10, against=500),
            decision("B10-0200/2025 - Unvoted", "2025-02-11", outcome=None),
            decision("B10-0300/2025 - Carried", "2025-02-12", outcome=None, favor=300),
        ]})

        result = await legislation.get_recently_decided_procedures(NOW)

        assert result.error is None
        assert [p.reference for p in result.data] == ["B10-0300/2025", "A10-0012/2025"]
        adopted = result.data[1]
        assert adopted.status == "Adopted"
        assert adopted.type == "Report"
        assert adopted.voting_result.favor == 400
        assert adopted.last_activity.type == "Voted"
        assert adopted.last_activity.date.startswith("2025-02-11")
        assert europarl.calls_to("/meetings/MTG-PL-2024-01-15/decisions") == 0
        assert europarl.calls_to("/meetings/MTG-PL-2025-04-01/decisions") == 0

    @pytest.mark.asyncio
    async def test_decisions_failure_skips_meeting(self, europarl, legislation):
        europarl.add("/meetings", {"data": [meeting("MTG-PL-2025-02-10", "2025-02-10T17:00:00+01:00")]}, year=2025)
        europarl.add("/meetings", {"data": []}, year=2024)
        europarl.add("/meetings/MTG-PL-2025-02-10/decisions", None, status=500)

        result = await legislation.get_recently_decided_procedures(NOW)

        assert result.error is None
        assert result.data == []

    @pytest.mark.asyncio
    async def test_listing_failure_is_reported(self, europarl, legislation):
        europarl.add("/meetings", None, year=2025, status=502)
        europarl.add("/meetings", {"data": []}, year=2024)

        result = await legislation.get_recently_decided_procedures(NOW)

        assert result.data == []
        assert result.error


class TestUpcomingSessions:
    @pytest.mark.asyncio
    async def test_future_plenaries_soonest_first(self, europarl, legislation):
        europarl.add("/meetings", {"data": [
            meeting("MTG-PL-2025-04-01", "2025-04-01T17:00:00+02:00", end="2025-04-03T13:00:00+02:00"),
            meeting("MTG-PL-2025-03-10", "2025-03-10T17:00:00+01:00"),
            meeting("MTG-PL-2025-02-10", "2025-02-10T17:00:00+01:00"),
            meeting("MTG-COMM-2025-03-05", "2025-03-05T09:00:00+01:00", "def/ep-activities/COMMITTEE_MEETING"),
        ]}, year=2025)

        result = await legislation.get_upcoming_plenary_sessions(NOW)

        assert [s.id for s in result.data] == ["MTG-PL-2025-03-10", "MTG-PL-2025-04-01"]
        first = result.data[0]
        assert first.type == "Plenary Session"
        assert first.end_date == first.start_date
        assert result.data[1].end_date.day == 3


class TestProcedureByReference:
    @pytest.mark.asyncio
    async def test_document_reference(self, europarl, legislation):
        europarl.add("/plenary-documents/A-9-2024-0123", {"data": [{"is_realized_by": [
            {"language": "def/languages/FRA", "title": {"fr": "Rapport sur l'air"}},
            {"language": "def/languages/ENG", "title": {"en": "Report on clean air"}},
        ]}]})

        result = await legislation.get_procedure_by_reference("A9-0123/2024", NOW)

        assert result.title == "Report on clean air"
        assert result.type == "Report"
        assert result.status == "Adopted"
        assert result.source_url is not None

    @pytest.mark.asyncio
    async def test_procedure_reference_builds_timeline(self, europarl, legislation):
        europarl.add("/procedures/2024-0123", detail("Clean air", stage="RDG2", activities=[
            {"activity_date": "2024-01-10", "had_activity_type": "def/ep-activities/COMMITTEE_VOTE"},
            {"activity_date": "2024-05-01", "had_activity_type": "def/ep-activities/PLENARY_VOTE"},
        ]))

        result = await legislation.get_procedure_by_reference("2024/0123(COD)", NOW)

        assert result.title == "Clean air"
        assert result.status == "2nd Reading"
        assert result.type == "Codecision"
        assert [e.date for e in result.timeline] == ["2024-05-01", "2024-01-10"]
        assert result.last_activity.type == "PLENARY VOTE"

    @pytest.mark.asyncio
    async def test_unknown_reference_gets_placeholder(self, legislation):
        result = await legislation.get_procedure_by_reference("A9-9999/2024", NOW)

        assert result.title == "Procedure A9-9999/2024"
        assert result.status == "In Progress"
        assert result.timeline == []
        assert result.source_url is None
