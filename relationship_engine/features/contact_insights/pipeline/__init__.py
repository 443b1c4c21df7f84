"""
Pipeline components for contact insights.

Pure pattern extraction and analysis generation. Subpackages expose the
services the orchestrator composes.
"""

__all__ = ["analysis", "patterns"]
