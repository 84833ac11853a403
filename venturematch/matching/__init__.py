"""
Investor-to-company matching.
"""

from venturematch.matching.matcher import CompanyMatcher, match_score

__all__ = ["CompanyMatcher", "match_score"]
