"""
Investor provenance helpers.
"""

from typing import Optional

from venturematch.core.models import InvestorSource

VALID_SOURCES = [s.value for s in InvestorSource]

# Sources the admin firm upload may assign
ADMIN_SOURCES = {InvestorSource.ADMIN.value, InvestorSource.AI.value}

SOURCE_DESCRIPTIONS = {
    "admin": "Admin Upload",
    "investor": "Self-Registered",
    "founder": "Added by Founder",
    "ai": "AI Discovery",
}

# Table that created_by_id points at for each source
REFERENCED_TABLES = {
    "investor": "investor_profiles",
    "founder": "profiles",
}


def is_valid_source(source: Optional[str]) -> bool:
    return source in VALID_SOURCES


def to_investor_source(source: Optional[str]) -> str:
    """Coerce arbitrary input to a valid source, defaulting to admin."""
    if not source or not isinstance(source, str):
        return InvestorSource.ADMIN.value
    clean = source.strip().lower()
    return clean if is_valid_source(clean) else InvestorSource.ADMIN.value


def source_description(source: Optional[str]) -> str:
    return SOURCE_DESCRIPTIONS.get(source or "", "Unknown Source")


def referenced_table(source: Optional[str]) -> Optional[str]:
    return REFERENCED_TABLES.get(source or "")
