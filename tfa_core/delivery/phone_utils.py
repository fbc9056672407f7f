"""
Phone Utilities
===============
Phone normalization and email-to-SMS gateway addressing.
"""

import re


def validate_e164(phone: str) -> bool:
    """
    Validate E.164 phone number format.

    Args:
        phone: Phone number

    Returns:
        True if valid E.164 format
    """
    pattern = r'^\+[1-9]\d{1,14}$'
    return bool(re.match(pattern, phone))


def normalize_phone(phone: str, default_country: str = "1") -> str:
    """
    Normalize a phone number to E.164 format.

    Args:
        phone: Raw phone number
        default_country: Default country code (without +)

    Returns:
        E.164 formatted number
    """
    digits = re.sub(r'\D', '', phone)

    if phone.strip().startswith('+'):
        return f"+{digits}"

    # 10 digits: national number, prepend the default country
    if len(digits) == 10:
        return f"+{default_country}{digits}"

    return f"+{digits}"


def sms_gateway_address(phone: str, domain: str, default_country: str = "1") -> str:
    """
    Build the email address of a carrier email-to-SMS gateway.

    Carriers expect the national number without country code, e.g.
    ``+1 (415) 555-1234`` at ``vtext.com`` becomes ``4155551234@vtext.com``.

    Args:
        phone: Raw or E.164 phone number
        domain: Gateway domain
        default_country: Country code stripped from the number

    Returns:
        Gateway email address

    Raises:
        ValueError: If the phone number or domain is unusable
    """
    e164 = normalize_phone(phone, default_country)
    if not validate_e164(e164):
        raise ValueError(f"Invalid phone number for SMS gateway: {phone!r}")

    domain = domain.strip().lstrip("@")
    if not domain or "@" in domain:
        raise ValueError(f"Invalid SMS gateway domain: {domain!r}")

    digits = e164[1:]
    if digits.startswith(default_country) and len(digits) > 10:
        digits = digits[len(default_country):]
    return f"{digits}@{domain}"
