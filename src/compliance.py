"""
Compliance status for consolidated vehicles.

Each document expiry is current, expired, missing or unknown (present but
unparseable). A vehicle is non-compliant when anything has expired and
needs review when anything is missing or unreadable.
"""

import logging
from typing import Any, Dict, Optional
from dataclasses import dataclass
from datetime import datetime

from dates import parse_date
from extraction.models import ConsolidatedVehicle

logger = logging.getLogger(__name__)

CURRENT = "current"
EXPIRED = "expired"
MISSING = "missing"
UNKNOWN = "unknown"

COMPLIANT = "compliant"
NON_COMPLIANT = "non-compliant"
REVIEW_NEEDED = "review-needed"


@dataclass(frozen=True)
class ComplianceStatus:
    registration_status: str
    insurance_status: str
    overall_status: str
    last_checked: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registrationStatus": self.registration_status,
            "insuranceStatus": self.insurance_status,
            "overallStatus": self.overall_status,
            "lastChecked": self.last_checked,
        }


def expiry_status(expiration_date: Optional[str], reference_date: Optional[datetime] = None) -> str:
    if not expiration_date:
        return MISSING
    expiry = parse_date(expiration_date)
    if expiry is None:
        return UNKNOWN
    reference_date = reference_date or datetime.now()
    return CURRENT if expiry.replace(tzinfo=None) > reference_date else EXPIRED


def compliance_status(vehicle: ConsolidatedVehicle, reference_date: Optional[datetime] = None) -> ComplianceStatus:
    reference_date = reference_date or datetime.now()
    record = vehicle.record
    statuses = (
        expiry_status(record.registration_expiry, reference_date),
        expiry_status(record.insurance_expiry, reference_date),
    )

    if EXPIRED in statuses:
        overall = NON_COMPLIANT
    elif MISSING in statuses or UNKNOWN in statuses:
        overall = REVIEW_NEEDED
    else:
        overall = COMPLIANT

    logger.debug(f"[compliance] {vehicle.key}: registration={statuses[0]} insurance={statuses[1]} -> {overall}")
    return ComplianceStatus(statuses[0], statuses[1], overall, reference_date.isoformat())
