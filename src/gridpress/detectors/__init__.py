"""Structural analysis: anchor detection and skeleton extraction."""

from .anchor_detector import StructuralAnchorDetector, heterogeneity_score, is_likely_header
from .skeleton_extractor import SkeletonExtractor

__all__ = [
    "SkeletonExtractor",
    "StructuralAnchorDetector",
    "heterogeneity_score",
    "is_likely_header",
]
