"""
Job runners for the contact insights feature.
"""

from .enrichment_job import run_contact_enrichment

__all__ = ["run_contact_enrichment"]
