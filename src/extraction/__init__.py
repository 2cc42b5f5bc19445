"""
Field extraction for fleet compliance documents.

Turns raw OCR text into structured records:
- Vehicle documents (registration, insurance): extraction.vehicle
- Driver documents (CDL, DOT medical certificate): extraction.driver
- Ordered field rules and the record builder: extraction.rules
- Pattern tables and vocabularies: extraction.patterns
"""

from .models import (
    ConsolidatedVehicle,
    ExtractedDriverRecord,
    ExtractedVehicleRecord,
    DOCUMENT_TYPES,
    DRIVER_DOCUMENT_TYPES,
    VEHICLE_DOCUMENT_TYPES,
)

__all__ = [
    "ConsolidatedVehicle",
    "ExtractedDriverRecord",
    "ExtractedVehicleRecord",
    "DOCUMENT_TYPES",
    "DRIVER_DOCUMENT_TYPES",
    "VEHICLE_DOCUMENT_TYPES",
]
