"""
Founder relationship contacts and the directory firms shared with founders.
"""

from venturematch.contacts.founder import FounderContactService

__all__ = ["FounderContactService"]
