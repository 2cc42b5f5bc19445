"""
Batch document processing.

Classifies each document, routes it to the vehicle or driver extractor,
normalizes vehicle identities, then reconciles the batch.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union
from dataclasses import dataclass, field, replace
from datetime import datetime

from classifier import classify_document, is_supported_file, preview_text
from compliance import ComplianceStatus, compliance_status
from extraction.driver import extract_driver_data
from extraction.models import DRIVER_DOCUMENT_TYPES, ExtractedDriverRecord, ExtractedVehicleRecord
from extraction.vehicle import extract_vehicle_data
from identity import normalize_license_plate, normalize_vin
from reconciliation import DeduplicationResult, ReconciliationResult, deduplicate_drivers, reconcile_vehicles

logger = logging.getLogger(__name__)

ExtractedRecord = Union[ExtractedVehicleRecord, ExtractedDriverRecord]


@dataclass(frozen=True)
class Document:
    """One uploaded document after OCR: its filename, text and optional type hint."""
    file_name: str
    text: str
    document_type: Optional[str] = None


@dataclass
class ProcessingSummary:
    total_files: int = 0
    processed: int = 0
    skipped: int = 0
    registration_docs: int = 0
    insurance_docs: int = 0
    medical_certificates: int = 0
    cdl_documents: int = 0
    unknown_docs: int = 0
    duplicates_found: int = 0

    def count(self, document_type: str) -> None:
        attribute = {
            'registration': 'registration_docs',
            'insurance': 'insurance_docs',
            'medical_certificate': 'medical_certificates',
            'cdl': 'cdl_documents',
        }.get(document_type, 'unknown_docs')
        setattr(self, attribute, getattr(self, attribute) + 1)

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalFiles": self.total_files,
            "processed": self.processed,
            "skipped": self.skipped,
            "registrationDocs": self.registration_docs,
            "insuranceDocs": self.insurance_docs,
            "medicalCertificates": self.medical_certificates,
            "cdlDocuments": self.cdl_documents,
            "unknownDocs": self.unknown_docs,
            "duplicatesFound": self.duplicates_found,
        }


@dataclass
class ProcessingResult:
    vehicle_records: List[ExtractedVehicleRecord] = field(default_factory=list)
    driver_records: List[ExtractedDriverRecord] = field(default_factory=list)
    vehicles: ReconciliationResult = field(default_factory=ReconciliationResult)
    drivers: DeduplicationResult = field(default_factory=DeduplicationResult)
    compliance: Dict[str, ComplianceStatus] = field(default_factory=dict)
    summary: ProcessingSummary = field(default_factory=ProcessingSummary)

    def to_dict(self) -> Dict[str, Any]:
        vehicles = self.vehicles.to_dict()
        for vehicle in vehicles["vehicles"]:
            status = self.compliance.get(vehicle["key"])
            vehicle["compliance"] = status.to_dict() if status else None
        return {
            "summary": self.summary.to_dict(),
            "vehicles": vehicles,
            "drivers": {
                "records": [record.to_dict() for record in self.drivers.records],
                "duplicateGroups": [group.to_dict() for group in self.drivers.groups],
            },
            "extracted": {
                "vehicles": [record.to_dict() for record in self.vehicle_records],
                "drivers": [record.to_dict() for record in self.driver_records],
            },
        }


def process_document(
    text: str,
    file_name: str,
    document_type: Optional[str] = None,
    reference_date: Optional[datetime] = None,
) -> ExtractedRecord:
    """
    Extract one document.

    The type hint wins when given; otherwise the document is classified
    from its filename and a preview of its text.
    """
    if document_type is None:
        document_type = classify_document(file_name, preview_text(file_name, text)).document_type

    if document_type in DRIVER_DOCUMENT_TYPES:
        return extract_driver_data(text, document_type, file_name, reference_date)
    return extract_vehicle_data(text, document_type, file_name, reference_date)


def normalize_vehicle_identity(record: ExtractedVehicleRecord) -> ExtractedVehicleRecord:
    return replace(
        record,
        vin=normalize_vin(record.vin) if record.vin else record.vin,
        license_plate=normalize_license_plate(record.license_plate) if record.license_plate else record.license_plate,
    )


def process_documents(
    documents: Iterable[Document],
    reference_date: Optional[datetime] = None,
) -> ProcessingResult:
    """Extract every document in upload order and reconcile the batch"""
    result = ProcessingResult()

    for document in documents:
        result.summary.total_files += 1
        if not is_supported_file(document.file_name):
            logger.warning(f"[pipeline] Unsupported file format: {document.file_name}")
            result.summary.skipped += 1
            continue

        document_type = document.document_type
        if document_type is None:
            document_type = classify_document(
                document.file_name, preview_text(document.file_name, document.text)
            ).document_type

        record = process_document(document.text, document.file_name, document_type, reference_date)
        result.summary.processed += 1
        result.summary.count(document_type)

        if isinstance(record, ExtractedDriverRecord):
            result.driver_records.append(record)
        else:
            result.vehicle_records.append(normalize_vehicle_identity(record))
        logger.info(f"[pipeline] {document.file_name}: {document_type}, "
                    f"confidence {record.extraction_confidence:.2f}, review={record.needs_review}")

    result.vehicles = reconcile_vehicles(result.vehicle_records, reference_date)
    result.drivers = deduplicate_drivers(result.driver_records, reference_date)
    result.compliance = {
        vehicle.key: compliance_status(vehicle, reference_date) for vehicle in result.vehicles.vehicles
    }
    result.summary.duplicates_found = (
        sum(len(group.removed) for group in result.vehicles.duplicate_groups) + result.drivers.removed_count
    )

    logger.info(f"[pipeline] Processed {result.summary.processed}/{result.summary.total_files} file(s): "
                f"{len(result.vehicles.vehicles)} vehicle(s), {len(result.drivers.records)} driver(s)")
    return result
