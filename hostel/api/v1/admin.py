from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from hostel.api.deps import Principal, require_admin
from hostel.db import SessionDep
from hostel.schemas import IntegrityReport
from hostel.services import store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/integrity", response_model=IntegrityReport, summary="Audit occupancy invariants")
def check_integrity(
    session: SessionDep,
    admin: Principal = Depends(require_admin),
) -> IntegrityReport:
    """Cross-check beds, active bookings and bed counters."""
    problems = store.find_inconsistencies(session)
    if problems:
        logger.error(f"Occupancy integrity check found {len(problems)} problem(s): {problems}")
    return IntegrityReport(consistent=not problems, problems=problems)
