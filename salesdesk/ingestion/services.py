# salesdesk/ingestion/services.py
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.config import settings
from salesdesk.ingestion.config import ingestion_settings
from salesdesk.ingestion.schemas import ImportResult, ParsedLead
from salesdesk.models.enums import CallStatus, LeadStatus
from salesdesk.models.lead import Lead
from salesdesk.timeutil import utcnow

logger = logging.getLogger("salesdesk.ingestion.services")

MIN_COLUMNS = 11

# Spreadsheet spellings -> persisted lead status
STATUS_MAP: Dict[str, str] = {
    "prospect": LeadStatus.PROSPECT.value,
    "qualified": LeadStatus.QUALIFIED.value,
    "proposal": LeadStatus.PROPOSAL.value,
    "negotiation": LeadStatus.NEGOTIATION.value,
    "closed won": LeadStatus.CLOSED_WON.value,
    "closed-won": LeadStatus.CLOSED_WON.value,
    "won": LeadStatus.CLOSED_WON.value,
    "closed lost": LeadStatus.CLOSED_LOST.value,
    "closed-lost": LeadStatus.CLOSED_LOST.value,
    "lost": LeadStatus.CLOSED_LOST.value,
}


class IngestionError(Exception):
    """Base exception for ingestion-related failures."""


def split_csv_line(line: str) -> List[str]:
    """
    Split one line on commas, honoring double quotes.

    A quote only toggles the in-quotes state and is dropped; there is no
    escaped-quote handling. Fields are trimmed.
    """
    columns: List[str] = []
    current: List[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            columns.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    columns.append("".join(current).strip())
    return columns


def normalize_status(raw: Optional[str]) -> str:
    key = (raw or "").strip().lower() or LeadStatus.PROSPECT.value
    return STATUS_MAP.get(key, LeadStatus.PROSPECT.value)


def _row_to_parsed_lead(columns: List[str]) -> ParsedLead:
    return ParsedLead(
        company=columns[0],
        revenue=columns[1],
        website=columns[2],
        go_skip=columns[3],
        phone=columns[4],
        whose_phone=columns[5],
        ceo=columns[6],
        called=columns[7],
        last_contact=columns[8],
        notes=columns[9],
        status=columns[10],
        name=columns[6] or "Unknown",
    )


def parse_csv(csv_text: str) -> List[ParsedLead]:
    """
    Parse spreadsheet text into importable rows.

    The first non-blank line is the header. Rows are dropped when they have
    fewer than 11 columns, are marked "skip", or lack a company or CEO.
    """
    lines = [line.strip() for line in csv_text.split("\n") if line.strip()]
    leads: List[ParsedLead] = []

    for line_no, line in enumerate(lines[1:], start=2):
        columns = split_csv_line(line)
        if len(columns) < MIN_COLUMNS:
            logger.debug("Dropping line %d: %d columns", line_no, len(columns))
            continue

        lead = _row_to_parsed_lead(columns)

        if "skip" in lead.go_skip.lower():
            continue
        if not lead.company.strip():
            continue
        if not lead.ceo.strip():
            continue

        leads.append(lead)

    return leads


def decode_csv_bytes(file_bytes: bytes) -> str:
    if len(file_bytes) > ingestion_settings.max_bytes:
        raise IngestionError(
            f"CSV file too large. Max allowed is {ingestion_settings.max_csv_size_mb} MB."
        )
    try:
        return file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_bytes.decode("latin-1")


def company_key(company: Optional[str]) -> str:
    return (company or "").lower().strip()


def existing_company_keys(db: Session) -> Set[str]:
    rows = db.query(Lead.company).all()
    return {company_key(row[0]) for row in rows}


def build_lead(parsed: ParsedLead, user_id: str, now: datetime) -> Lead:
    return Lead(
        user_id=user_id,
        name=parsed.name or parsed.ceo or "Unknown",
        company=parsed.company.strip(),
        phone=parsed.phone or "",
        position="",
        status=normalize_status(parsed.status),
        revenue=parsed.revenue or "",
        notes=parsed.notes or "",
        call_status=CallStatus.NOT_CALLED.value,
        industry=settings.import_default_industry,
        website=parsed.website or "",
        ceo=parsed.ceo or "",
        whose_phone=parsed.whose_phone or "",
        go_skip=parsed.go_skip or "",
        last_contact=now,
        scheduled_call=None,
    )


def _error_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def import_leads(
    db: Session,
    parsed_leads: List[ParsedLead],
    user_id: str,
    batch_size: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ImportResult:
    """
    Insert parsed rows that don't collide with an existing company.

    Each batch is committed on its own; a failed batch is reported and the
    run continues with the next one.
    """
    batch_size = batch_size or ingestion_settings.batch_size
    now = now or utcnow()
    result = ImportResult(total=len(parsed_leads))

    try:
        seen = existing_company_keys(db)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Could not load existing companies; import aborted")
        return ImportResult(errors=[f"Import failed: {_error_message(exc)}"])

    for start in range(0, len(parsed_leads), batch_size):
        batch_no = start // batch_size + 1
        to_insert: List[Lead] = []

        for parsed in parsed_leads[start:start + batch_size]:
            key = company_key(parsed.company)
            if key in seen:
                result.duplicates += 1
                continue
            to_insert.append(build_lead(parsed, user_id, now))
            seen.add(key)

        if not to_insert:
            continue

        try:
            db.add_all(to_insert)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                "Batch %d insert failed (%d rows): %s",
                batch_no,
                len(to_insert),
                exc,
                extra={"batch": batch_no},
            )
            result.errors.append(f"Batch {batch_no}: {_error_message(exc)}")
            result.skipped += len(to_insert)
            continue

        result.imported += len(to_insert)
        logger.info("Imported batch %d of %d leads", batch_no, len(to_insert))

    logger.info(
        "CSV import completed (user=%s, total=%s, imported=%s, duplicates=%s, skipped=%s)",
        user_id,
        result.total,
        result.imported,
        result.duplicates,
        result.skipped,
    )
    return result


def import_leads_from_csv_content(
    file_bytes: bytes,
    db: Session,
    user_id: str,
) -> ImportResult:
    """Decode, parse and import an uploaded CSV file."""
    csv_text = decode_csv_bytes(file_bytes)
    parsed = parse_csv(csv_text)
    logger.info("Parsed %d leads from CSV (user=%s)", len(parsed), user_id)
    return import_leads(db, parsed, user_id)
