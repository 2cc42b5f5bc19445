"""
Document type classification.

Assigns registration, insurance, medical_certificate, cdl or unknown from
the filename and, when available, a short preview of the document text.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple
from dataclasses import dataclass

import config

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('.pdf', '.jpg', '.jpeg', '.png', '.tiff', '.doc', '.docx', '.txt')
IMAGE_FORMATS = ('.jpg', '.jpeg', '.png', '.tiff')

# Checked in order; the first family with a keyword in the filename wins
FILENAME_FAMILIES: Tuple[Tuple[str, float, Tuple[str, ...]], ...] = (
    ('medical_certificate', 0.9, ('medical', 'dot_medical', 'physical', 'med_cert',
                                  'medical_certificate', 'med_card', 'dot_card')),
    ('cdl', 0.9, ('cdl', 'license', 'driver_license', 'commercial_license')),
    ('registration', 0.8, ('registration', 'reg', 'title', 'dmv')),
    ('insurance', 0.8, ('insurance', 'policy', 'coverage', 'certificate')),
)
DEFAULT_CONFIDENCE = 0.5

REGISTRATION_INDICATORS = ('registration', 'department of motor vehicles', 'dmv', 'vehicle title', 'license plate')
INSURANCE_INDICATORS = ('insurance', 'policy', 'coverage', 'premium', 'certificate', 'liability')
CONTENT_THRESHOLD = 0.3
UNKNOWN_CONTENT_CONFIDENCE = 0.1


@dataclass(frozen=True)
class Classification:
    document_type: str
    confidence: float


def is_supported_file(file_name: str) -> bool:
    return file_name.lower().endswith(SUPPORTED_FORMATS)


def preview_text(file_name: str, text: Optional[str]) -> str:
    """First characters of the text, or a marker for images with no text layer"""
    if file_name.lower().endswith(IMAGE_FORMATS) and not text:
        return f"IMAGE_{Path(file_name).name}"
    return (text or "")[:config.CLASSIFIER_PREVIEW_LENGTH]


def classify_by_filename(file_name: str) -> Classification:
    name = (file_name or "").lower()
    for document_type, confidence, keywords in FILENAME_FAMILIES:
        if any(keyword in name for keyword in keywords):
            return Classification(document_type, confidence)
    return Classification('unknown', DEFAULT_CONFIDENCE)


def classify_by_content(preview: str) -> Classification:
    """Keyword density over registration and insurance indicator lists"""
    text = (preview or "").lower()
    reg_score = sum(1 for indicator in REGISTRATION_INDICATORS if indicator in text) / len(REGISTRATION_INDICATORS)
    ins_score = sum(1 for indicator in INSURANCE_INDICATORS if indicator in text) / len(INSURANCE_INDICATORS)

    if reg_score > ins_score and reg_score > CONTENT_THRESHOLD:
        return Classification('registration', reg_score)
    if ins_score > reg_score and ins_score > CONTENT_THRESHOLD:
        return Classification('insurance', ins_score)
    return Classification('unknown', UNKNOWN_CONTENT_CONFIDENCE)


def classify_document(file_name: str, preview: Optional[str] = None) -> Classification:
    """
    Classify a document by filename, letting the content preview override
    only when it is strictly more confident.
    """
    result = classify_by_filename(file_name)
    if preview:
        by_content = classify_by_content(preview)
        if by_content.confidence > result.confidence:
            logger.debug(f"[classifier] {file_name}: content ({by_content.document_type}, "
                         f"{by_content.confidence:.2f}) overrides filename ({result.document_type})")
            result = by_content

    logger.debug(f"[classifier] {file_name} -> {result.document_type} ({result.confidence:.2f})")
    return result
