"""
Bulk data import module.

Provides CSV/Excel parsing and the investor/contact import engines.
"""

from venturematch.import_data.investors import (
    FounderInvestorImporter,
    FounderContactImporter,
    InvestorContactUploader,
    InvestorFileImporter,
)

__all__ = [
    "FounderInvestorImporter",
    "FounderContactImporter",
    "InvestorContactUploader",
    "InvestorFileImporter",
]
