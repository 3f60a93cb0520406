"""
WorkZen - Field Validators

Format checks for Indian identity and banking fields.
"""

import re
from typing import Optional

PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
AADHAAR_PATTERN = re.compile(r"^\d{12}$")
IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
ACCOUNT_NUMBER_PATTERN = re.compile(r"^\d{9,18}$")
PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")
PINCODE_PATTERN = re.compile(r"^\d{6}$")


def _clean(value: Optional[str]) -> str:
    return (value or "").replace(" ", "")


def validate_pan(pan: Optional[str]) -> bool:
    return bool(pan) and bool(PAN_PATTERN.match(pan))


def validate_aadhaar(aadhaar: Optional[str]) -> bool:
    return bool(AADHAAR_PATTERN.match(_clean(aadhaar)))


def validate_ifsc(ifsc: Optional[str]) -> bool:
    return bool(ifsc) and bool(IFSC_PATTERN.match(ifsc))


def validate_account_number(account_number: Optional[str]) -> bool:
    return bool(ACCOUNT_NUMBER_PATTERN.match(_clean(account_number)))


def validate_phone(phone: Optional[str]) -> bool:
    return bool(phone) and bool(PHONE_PATTERN.match(phone))


def validate_pincode(pincode: Optional[str]) -> bool:
    return bool(pincode) and bool(PINCODE_PATTERN.match(pincode))
