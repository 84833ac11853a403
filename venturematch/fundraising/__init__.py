"""
Fundraising: rounds, founder investor lists and the cap table.
"""

from venturematch.fundraising.captable import CaptableService
from venturematch.fundraising.rounds import FundraisingService

__all__ = ["CaptableService", "FundraisingService"]
