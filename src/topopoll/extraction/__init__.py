"""
Rule interpretation: wanted attributes to requests, responses to attributes.
"""

from __future__ import annotations

from topopoll.extraction.engine import ExtractionEngine, ResolutionContext

__all__ = ["ExtractionEngine", "ResolutionContext"]
