"""
Founder companies: profiles and industry selections.
"""

from venturematch.companies.profiles import CompanyService
from venturematch.companies.industries import IndustryService

__all__ = ["CompanyService", "IndustryService"]
