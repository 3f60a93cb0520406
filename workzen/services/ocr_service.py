"""
WorkZen - OCR Service

Extracts advisory data from uploaded identity documents using Tesseract.
Extracted values are shown to HR for review and are never written back
into the onboarding record.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from workzen.config import settings
from workzen.utils.error_handling import AppException, ErrorCode, ValidationException

logger = logging.getLogger(__name__)

PAN_PATTERN = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")
AADHAAR_PATTERN = re.compile(r"\d{4}\s?\d{4}\s?\d{4}")
DOB_PATTERN = re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}")
PHONE_PATTERN = re.compile(r"[6-9]\d{9}")
EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")

OCR_DOCUMENT_TYPES = ("pan", "aadhaar", "resume", "address_proof")


class OCRExtractionError(AppException):
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            code=ErrorCode.INTERNAL_ERROR,
            message=message,
            original_error=original_error,
        )


# ===========================================
# FIELD EXTRACTORS
# ===========================================

def _lines(text: str):
    return [line.strip() for line in text.splitlines() if line.strip()]


def extract_pan(text: str) -> Optional[str]:
    match = PAN_PATTERN.search(text)
    return match.group(0) if match else None


def extract_aadhaar(text: str) -> Optional[str]:
    match = AADHAAR_PATTERN.search(text)
    return re.sub(r"\s", "", match.group(0)) if match else None


def extract_name(text: str) -> str:
    """Heuristic: the first three non-empty lines."""
    return " ".join(_lines(text)[:3]).strip()


def extract_date_of_birth(text: str) -> Optional[str]:
    match = DOB_PATTERN.search(text)
    return match.group(0) if match else None


def extract_contact_number(text: str) -> Optional[str]:
    match = PHONE_PATTERN.search(text)
    return match.group(0) if match else None


def extract_email(text: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(text)
    return match.group(0) if match else None


def extract_address(text: str) -> str:
    """Heuristic: the first five non-empty lines."""
    return " ".join(_lines(text)[:5]).strip()


def extract_fields(text: str, document_type: str) -> Dict[str, Any]:
    """Apply the document-type specific extractors to OCR text."""
    doc_type = document_type.lower()
    extracted: Dict[str, Any] = {}
    
    if doc_type == "pan":
        extracted["pan"] = extract_pan(text)
        extracted["name"] = extract_name(text)
        extracted["dob"] = extract_date_of_birth(text)
    elif doc_type == "aadhaar":
        extracted["aadhaar"] = extract_aadhaar(text)
        extracted["name"] = extract_name(text)
        extracted["dob"] = extract_date_of_birth(text)
    elif doc_type == "resume":
        extracted["name"] = extract_name(text)
        extracted["contact"] = extract_contact_number(text)
        extracted["email"] = extract_email(text)
    elif doc_type == "address_proof":
        extracted["address"] = extract_address(text)
    
    return extracted


class OCRService:
    """Runs Tesseract on stored documents."""
    
    def __init__(self, lang: str = "eng"):
        self.lang = lang
    
    def _recognize(self, path: Path) -> Tuple[str, float]:
        import pytesseract
        from PIL import Image
        
        if settings.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = settings.tesseract_cmd
        
        with Image.open(path) as image:
            text = pytesseract.image_to_string(image, lang=self.lang)
            data = pytesseract.image_to_data(image, output_type=pytesseract.Output.DICT)
        
        confidences = [float(c) for c in data.get("conf", []) if float(c) >= 0]
        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        return text, round(confidence, 2)
    
    async def extract_text(self, path: Path) -> Tuple[str, float]:
        """
        Raw text and mean word confidence (0-100) for an image.
        
        Raises:
            OCRExtractionError: Tesseract is unavailable or the image is unreadable
        """
        logger.info(f"Starting OCR extraction for: {path.name}")
        try:
            return await asyncio.to_thread(self._recognize, path)
        except Exception as e:
            logger.error(f"OCR extraction failed for {path.name}: {e}")
            raise OCRExtractionError(f"OCR extraction failed: {e}", original_error=e) from e
    
    async def parse_document(self, path: Path, document_type: str) -> Dict[str, Any]:
        """OCR a document and pull out the fields relevant to its type."""
        if document_type.lower() not in OCR_DOCUMENT_TYPES:
            raise ValidationException(
                f"Unsupported document type. Use one of: {', '.join(OCR_DOCUMENT_TYPES)}",
                field="document_type",
            )
        
        text, confidence = await self.extract_text(path)
        extracted = extract_fields(text, document_type)
        extracted["confidence"] = confidence
        extracted["raw_text"] = text
        
        logger.info(f"OCR extraction completed for {document_type}")
        return extracted
