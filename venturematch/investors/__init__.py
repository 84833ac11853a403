"""
Investors: self-service profiles, portfolios and the admin-curated directory.
"""

from venturematch.investors.profile import InvestorProfileService
from venturematch.investors.portfolio import PortfolioService
from venturematch.investors.directory import InvestorDirectory

__all__ = ["InvestorProfileService", "PortfolioService", "InvestorDirectory"]
