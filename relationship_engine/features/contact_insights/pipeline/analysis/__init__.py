"""
Analysis generation package.

Heuristic and AI-augmented classification of a contact.
"""

from .service import (
    AnalysisGenerator,
    AnalysisMode,
    ContactIntelligenceResponse,
    analysis_generator,
    heuristic_insights,
)

__all__ = [
    "AnalysisGenerator",
    "AnalysisMode",
    "ContactIntelligenceResponse",
    "analysis_generator",
    "heuristic_insights",
]
