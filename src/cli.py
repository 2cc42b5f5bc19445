"""
Command-line entry point.

Reads OCR text files, runs the full extraction and reconciliation
pipeline over them in the order given, and prints the JSON result.

    fleetdocs reg_truck_047.txt insurance_truck_047.txt --output result.json
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import List, Optional

import config
from dates import parse_date
from extraction.models import DOCUMENT_TYPES
from pipeline import Document, ProcessingResult, process_documents
from schema import (
    CONSOLIDATED_VEHICLE_SCHEMA,
    DRIVER_RECORD_SCHEMA,
    VEHICLE_RECORD_SCHEMA,
    validate_schema,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fleetdocs",
        description="Extract and reconcile fleet compliance documents",
    )
    parser.add_argument("files", nargs="+", help="OCR text files, processed in upload order")
    parser.add_argument("--type", dest="document_type", choices=DOCUMENT_TYPES,
                        help="Force a document type instead of classifying each file")
    parser.add_argument("--reference-date", help="Treat this date as today for expiry checks")
    parser.add_argument("--output", "-o", help="Write JSON here instead of stdout")
    parser.add_argument("--validate", action="store_true", help="Check output rows against the JSON schema")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level (default: %(default)s)")
    return parser


def load_documents(paths: List[str], document_type: Optional[str] = None) -> List[Document]:
    documents = []
    for path in paths:
        file_path = Path(path)
        text = file_path.read_text(encoding="utf-8", errors="replace") if file_path.suffix.lower() == ".txt" else ""
        documents.append(Document(file_name=file_path.name, text=text, document_type=document_type))
    return documents


def schema_errors(result: ProcessingResult) -> List[str]:
    """Schema problems across extracted and consolidated rows"""
    errors = []
    errors.extend(f"vehicle record {e}" for e in validate_schema(
        [record.to_dict() for record in result.vehicle_records], VEHICLE_RECORD_SCHEMA))
    errors.extend(f"driver record {e}" for e in validate_schema(
        [record.to_dict() for record in result.driver_records], DRIVER_RECORD_SCHEMA))
    errors.extend(f"consolidated vehicle {e}" for e in validate_schema(
        [vehicle.to_dict() for vehicle in result.vehicles.vehicles], CONSOLIDATED_VEHICLE_SCHEMA))
    return errors


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    reference_date = None
    if args.reference_date:
        reference_date = parse_date(args.reference_date)
        if reference_date is None:
            logger.error(f"[cli] Could not parse reference date: {args.reference_date}")
            return 2

    missing = [path for path in args.files if not Path(path).is_file()]
    if missing:
        for path in missing:
            logger.error(f"[cli] File not found: {path}")
        return 2

    result = process_documents(load_documents(args.files, args.document_type), reference_date)

    if args.validate:
        errors = schema_errors(result)
        for error in errors:
            logger.error(f"[cli] Schema: {error}")
        if errors:
            return 1

    output = json.dumps(result.to_dict(), indent=2)
    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
        logger.info(f"[cli] Wrote {args.output}")
    else:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
