"""Parsing helpers for EP Open Data identifiers, labels and vocabularies.

Two reference styles exist:

* document-style, e.g. ``A9-0123/2024`` (a plenary report); upstream id
  ``A-9-2024-0123``
* procedure-style, e.g. ``2024/0123(COD)``; upstream id ``2024-0123``

Everything here is best-effort text parsing. Unparseable input still yields
a usable string.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

DOCUMENT_REFERENCE_RE = re.compile(r"^([A-Z])(\d+)-(\d+)/(\d+)$")
PROCEDURE_REFERENCE_RE = re.compile(r"^(\d{4})/(\d+)\(([A-Z]+)\)$")

# Same shapes, found anywhere inside a free-text label
_DOCUMENT_IN_TEXT_RE = re.compile(r"\b([A-Z]\d+-\d+/\d{4})\b")
_PROCEDURE_IN_TEXT_RE = re.compile(r"\b(\d{4}/\d+\([A-Z]+\))")

_DOCUMENT_ID_RE = re.compile(r"^([A-Z])-(\d+)-(\d{4})-(\d+)$")
_PROCEDURE_ID_RE = re.compile(r"^(\d{4})-(\d+)$")

PROCEDURE_TYPE_LABELS: dict[str, str] = {
    "COD": "Codecision",
    "CNS": "Consultation",
    "NLE": "Non-legislative",
    "BUD": "Budget",
    "APP": "Consent",
    "INI": "Own-initiative",
    "INL": "Legislative Initiative",
    "RSP": "Resolution",
    "SYN": "Cooperation",
    "IMM": "Immunity",
    "REG": "Rules of Procedure",
    "DCE": "Discharge",
}

STAGE_LABELS: dict[str, str] = {
    "RDG1": "1st Reading",
    "RDG2": "2nd Reading",
    "RDG3": "3rd Reading",
    "CONC": "Conciliation",
    "FIN": "Completed",
}

COMMITTEE_ROLES = frozenset({"COMMITTEE_RESPONSIBLE", "COMMITTEE_OPINION"})

PROCEDURE_FILE_URL = "https://oeil.secure.europarl.europa.eu/oeil/en/procedure-file?reference="


def last_segment(value: str | None) -> str:
    """``def/ep-roles/COMMITTEE_OPINION`` -> ``COMMITTEE_OPINION``."""
    if not value:
        return ""
    return value.rstrip("/").rsplit("/", 1)[-1]


def get_localized_label(labels: dict[str, str] | str | None, lang: str = "en") -> str:
    """Pick ``lang``, then English, then any language."""
    if not labels:
        return ""
    if isinstance(labels, str):
        return labels
    return labels.get(lang) or labels.get("en") or next(iter(labels.values()), "") or ""


# ---------------------------------------------------------------------------
# Reference styles
# ---------------------------------------------------------------------------


def is_document_reference(reference: str) -> bool:
    return DOCUMENT_REFERENCE_RE.match(reference) is not None


def is_procedure_reference(reference: str) -> bool:
    return PROCEDURE_REFERENCE_RE.match(reference) is not None


def document_reference_to_id(reference: str) -> str | None:
    """``A9-0123/2024`` -> ``A-9-2024-0123``; None for other shapes."""
    match = DOCUMENT_REFERENCE_RE.match(reference)
    if match is None:
        return None
    letter, term, number, year = match.groups()
    return f"{letter}-{term}-{year}-{number.zfill(4)}"


def procedure_reference_to_id(reference: str) -> str:
    """``2024/0123(COD)`` -> ``2024-0123``; other shapes are made path-safe."""
    match = PROCEDURE_REFERENCE_RE.match(reference)
    if match is None:
        return re.sub(r"[()]", "", reference.replace("/", "_"))
    year, number, _ = match.groups()
    return f"{year}-{number}"


def infer_reference(label: str | None, identifier: str | None = None) -> str:
    """Best-effort human reference for an upstream record.

    Tries a reference pattern inside the label, then derives one from the
    upstream identifier, then falls back to the identifier's last segment.
    """
    if label:
        text = label.strip()
        if is_document_reference(text) or is_procedure_reference(text):
            return text
        for pattern in (_PROCEDURE_IN_TEXT_RE, _DOCUMENT_IN_TEXT_RE):
            found = pattern.search(text)
            if found:
                return found.group(1)

    segment = last_segment(identifier)
    doc = _DOCUMENT_ID_RE.match(segment)
    if doc:
        letter, term, year, number = doc.groups()
        return f"{letter}{term}-{number}/{year}"
    proc = _PROCEDURE_ID_RE.match(segment)
    if proc:
        year, number = proc.groups()
        return f"{year}/{number}"
    return segment or (label or "").strip()


# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------


def procedure_type_label(process_type: str | None) -> str:
    """``def/ep-procedure-types/COD`` -> ``Codecision``."""
    code = last_segment(process_type)
    if not code:
        return "Procedure"
    return PROCEDURE_TYPE_LABELS.get(code, code)


def document_type_label(reference: str) -> str:
    """Category shown for a reference when no upstream type is known."""
    if reference.startswith("A"):
        return "Report"
    if reference.startswith("B"):
        return "Resolution"
    if reference.startswith("C"):
        return "Communication"
    match = PROCEDURE_REFERENCE_RE.match(reference)
    if match:
        return PROCEDURE_TYPE_LABELS.get(match.group(3), "Procedure")
    return "Adopted"


def stage_label(stage: str | None, missing: str = "In Progress") -> str:
    if not stage:
        return missing
    return STAGE_LABELS.get(last_segment(stage), "In Progress")


def is_completed_stage(stage: str | None) -> bool:
    return last_segment(stage) == "FIN"


def procedure_source_url(reference: str) -> str:
    return PROCEDURE_FILE_URL + quote(reference, safe="")


# ---------------------------------------------------------------------------
# Procedure detail extraction
# ---------------------------------------------------------------------------


def extract_committees(participation: list[dict[str, Any]] | None) -> list[str]:
    """Responsible and opinion committees, in first-seen order."""
    committees: list[str] = []
    for item in participation or []:
        if not isinstance(item, dict):
            continue
        if last_segment(item.get("participation_role")) not in COMMITTEE_ROLES:
            continue
        orgs = item.get("had_participant_organization")
        for org in orgs if isinstance(orgs, list) else [orgs]:
            if isinstance(org, str):
                name = last_segment(org)
                if name and name not in committees:
                    committees.append(name)
    return committees


def parse_date(value: Any) -> datetime | None:
    """Parse an upstream ISO date or datetime into an aware UTC datetime."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def activity_type_label(activity_type: str | None) -> str:
    return last_segment(activity_type).replace("_", " ") or "Activity"


def build_timeline(consists_of: list[dict[str, Any]] | None) -> list[dict[str, str]]:
    """Dated activities, newest first."""
    dated = [
        a for a in consists_of or []
        if isinstance(a, dict) and parse_date(a.get("activity_date")) is not None
    ]
    dated.sort(key=lambda a: parse_date(a["activity_date"]), reverse=True)  # type: ignore[arg-type, return-value]
    timeline = []
    for idx, activity in enumerate(dated):
        label = activity_type_label(activity.get("had_activity_type"))
        timeline.append({
            "id": f"evt-{idx}-{activity['activity_date']}",
            "date": activity["activity_date"],
            "type": label,
            "title": label,
        })
    return timeline


def latest_activity(consists_of: list[dict[str, Any]] | None) -> dict[str, str] | None:
    timeline = build_timeline(consists_of)
    if not timeline:
        return None
    return {"date": timeline[0]["date"], "type": timeline[0]["type"]}
