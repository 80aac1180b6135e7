from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.models import Lead
from salesdesk.timeutil import as_utc, utcnow
from salesdesk.services.errors import RecordNotFoundError, ServiceError
from salesdesk.services.revenue import revenue_sort_key

logger = logging.getLogger("salesdesk.services.leads")

COMPANY_UNIQUE_INDEX = "leads_company_unique"


class LeadServiceError(ServiceError):
    """Base exception for lead operations."""


class DuplicateCompanyError(LeadServiceError):
    def __init__(self, company: str, from_constraint: bool = False) -> None:
        if from_constraint:
            message = (
                f'Database constraint: A lead with company "{company}" already exists '
                "globally. Please use a different company name."
            )
        else:
            message = (
                f'A lead with company "{company}" already exists in the system. '
                "Each company can only exist once globally. Please use a different "
                "company name or check if this is a duplicate."
            )
        super().__init__(message)
        self.company = company
        self.from_constraint = from_constraint


# ---------------------------------------------------------------------------
# Duplicate pre-check
# ---------------------------------------------------------------------------

def find_duplicate_company(
    company: str,
    snapshot: Iterable[Tuple[int, str]],
    exclude_id: Optional[int] = None,
) -> Optional[int]:
    """
    Return the id of a lead in `snapshot` whose company matches, or None.

    Matching is case-insensitive on trimmed names. `snapshot` is a sequence
    of (lead_id, company) pairs.
    """
    key = (company or "").strip().lower()
    if not key:
        return None
    for lead_id, existing in snapshot:
        if exclude_id is not None and lead_id == exclude_id:
            continue
        if (existing or "").strip().lower() == key:
            return lead_id
    return None


def check_duplicate_company(
    db: Session,
    company: str,
    exclude_id: Optional[int] = None,
) -> Optional[int]:
    """
    Advisory duplicate check across every actor's leads.

    A query failure is logged and treated as "no duplicate"; the unique
    index still rejects a real duplicate on write.
    """
    key = (company or "").strip().lower()
    if not key:
        return None
    try:
        rows = (
            db.query(Lead.id, Lead.company)
            .filter(func.lower(func.trim(Lead.company)) == key)
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Error checking for global duplicates of %r", company)
        db.rollback()
        return None

    duplicate_id = find_duplicate_company(company, [(r[0], r[1]) for r in rows], exclude_id)
    if duplicate_id is not None:
        logger.info("Duplicate company %r found (lead id=%s)", company, duplicate_id)
    return duplicate_id


def _is_company_violation(exc: IntegrityError) -> bool:
    return COMPANY_UNIQUE_INDEX in str(getattr(exc, "orig", exc))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def list_leads(
    db: Session,
    user_id: str,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    call_status: Optional[str] = None,
    industry: Optional[str] = None,
    sort: str = "revenue",
) -> List[Lead]:
    """
    The actor's leads with the lead table's filters.

    sort="revenue" orders by parsed revenue, highest first; anything else
    keeps newest first.
    """
    try:
        query = db.query(Lead).filter(Lead.user_id == user_id)

        if status:
            query = query.filter(Lead.status == status)
        if call_status:
            query = query.filter(Lead.call_status == call_status)
        if industry:
            query = query.filter(Lead.industry == industry)
        if search:
            like = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Lead.name).like(like),
                    func.lower(Lead.company).like(like),
                    func.lower(func.coalesce(Lead.email, "")).like(like),
                )
            )

        leads: List[Lead] = query.order_by(Lead.created_at.desc()).all()
    except SQLAlchemyError:
        logger.exception(
            "Error while fetching leads (user=%s, status=%s, search=%s)",
            user_id,
            status,
            search,
        )
        raise

    if sort == "revenue":
        leads.sort(key=lambda lead: revenue_sort_key(lead.revenue), reverse=True)

    logger.debug("Fetched %d leads for %s", len(leads), user_id)
    return leads


def list_industries(db: Session, user_id: str) -> List[str]:
    rows = (
        db.query(Lead.industry)
        .filter(Lead.user_id == user_id)
        .filter(Lead.industry.isnot(None))
        .filter(Lead.industry != "")
        .distinct()
        .all()
    )
    return sorted(r[0] for r in rows)


def get_lead(db: Session, lead_id: int, user_id: str) -> Lead:
    lead = (
        db.query(Lead)
        .filter(Lead.id == lead_id, Lead.user_id == user_id)
        .one_or_none()
    )
    if lead is None:
        raise RecordNotFoundError("Lead", lead_id)
    return lead


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _commit_lead(db: Session, lead: Lead, company: str) -> Lead:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if _is_company_violation(exc):
            logger.warning("Unique index rejected company %r", company)
            raise DuplicateCompanyError(company, from_constraint=True) from exc
        logger.exception("Integrity error saving lead for company %r", company)
        raise
    db.refresh(lead)
    return lead


def create_lead(db: Session, user_id: str, lead_data: Dict[str, Any]) -> Lead:
    """
    Create and persist a lead from form data.
    """
    company = lead_data["company"].strip()
    if check_duplicate_company(db, company) is not None:
        raise DuplicateCompanyError(company)

    lead = Lead(
        **{**lead_data, "company": company},
        user_id=user_id,
        last_contact=utcnow(),
    )
    db.add(lead)
    lead = _commit_lead(db, lead, company)
    logger.info("Created lead id=%s company=%s user=%s", lead.id, lead.company, user_id)
    return lead


def update_lead(db: Session, lead: Lead, lead_data: Dict[str, Any]) -> Lead:
    company = lead_data.get("company", lead.company).strip()
    if check_duplicate_company(db, company, exclude_id=lead.id) is not None:
        raise DuplicateCompanyError(company)

    for key, value in lead_data.items():
        setattr(lead, key, value)
    lead.company = company
    lead.last_contact = utcnow()
    lead = _commit_lead(db, lead, company)
    logger.info("Updated lead id=%s", lead.id)
    return lead


def quick_edit_lead(
    db: Session,
    lead: Lead,
    *,
    status: Optional[str] = None,
    call_status: Optional[str] = None,
) -> Dict[str, Tuple[Optional[str], str]]:
    """
    Inline status/call-status change. Returns {field: (old, new)}.
    """
    changes: Dict[str, Tuple[Optional[str], str]] = {}
    if status is not None and status != lead.status:
        changes["status"] = (lead.status, status)
        lead.status = status
    if call_status is not None and call_status != lead.call_status:
        changes["call_status"] = (lead.call_status, call_status)
        lead.call_status = call_status
    if changes:
        db.commit()
        db.refresh(lead)
        logger.info("Quick-edited lead id=%s: %s", lead.id, changes)
    return changes


def schedule_call(db: Session, lead: Lead, when: Optional[datetime]) -> Lead:
    """Set (or clear, with when=None) the lead's callback time, stored as UTC."""
    lead.scheduled_call = as_utc(when)
    db.commit()
    db.refresh(lead)
    logger.info("Lead id=%s scheduled_call=%s", lead.id, when)
    return lead


def delete_lead(db: Session, lead: Lead) -> None:
    lead_id = lead.id
    db.delete(lead)
    db.commit()
    logger.info("Deleted lead id=%s", lead_id)


def delete_leads(db: Session, user_id: str, lead_ids: List[int]) -> int:
    result = db.execute(
        delete(Lead)
        .where(Lead.user_id == user_id, Lead.id.in_(lead_ids))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    logger.info("Deleted %d selected leads for %s", result.rowcount, user_id)
    return result.rowcount


def delete_all_leads(db: Session, user_id: str) -> int:
    """One unconditional bulk delete of the actor's leads."""
    result = db.execute(
        delete(Lead)
        .where(Lead.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    logger.warning("Deleted ALL %d leads for %s", result.rowcount, user_id)
    return result.rowcount
