"""
Admin services: statistics, investor and firm management, enrichment.
"""

from venturematch.admin.stats import AdminStats
from venturematch.admin.investors import AdminInvestorService
from venturematch.admin.firms import FirmService
from venturematch.admin.enrichment import EnrichmentService

__all__ = ["AdminStats", "AdminInvestorService", "FirmService", "EnrichmentService"]
