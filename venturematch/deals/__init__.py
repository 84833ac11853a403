"""
Deal pipeline module.

Tracks investor-founder pairs from interest to close.
"""

from venturematch.deals.pipeline import DealPipeline, PIPELINE_STAGES

__all__ = ["DealPipeline", "PIPELINE_STAGES"]
