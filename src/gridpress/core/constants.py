"""Centralized constants for GridPress.

This module contains all constants used throughout the GridPress codebase,
organized by category for easy access and maintenance.
"""

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class CellFormattingConstants:
    """Constants for value-to-string conversion."""

    NUMBER_PRECISION: Final[int] = 6
    DATE_FORMAT: Final[str] = "%Y-%m-%d"
    TIME_FORMAT: Final[str] = "%H:%M:%S"
    TRUE_LITERAL: Final[str] = "TRUE"
    FALSE_LITERAL: Final[str] = "FALSE"


@dataclass(frozen=True)
class AnchorDetectionConstants:
    """Constants for structural anchor detection."""

    # Heterogeneity divisors
    FORMAT_DIVERSITY_DIVISOR: Final[int] = 5
    BACKGROUND_DIVERSITY_DIVISOR: Final[int] = 3
    MIXED_BOLD_SCORE: Final[float] = 0.5

    # Header heuristics
    HEADER_STRING_RATIO: Final[float] = 0.7
    HEADER_STRONG_STRING_RATIO: Final[float] = 0.9
    HEADER_UNIQUE_RATIO: Final[float] = 0.8
    SIMPLE_HEADER_CONFIDENCE: Final[float] = 0.8
    MULTI_LEVEL_HEADER_CONFIDENCE: Final[float] = 0.9

    DEFAULT_NEIGHBORHOOD: Final[int] = 2


@dataclass(frozen=True)
class InvertedIndexConstants:
    """Constants for inverted-index range compaction."""

    MIN_RUN_LENGTH: Final[int] = 3
    KEY_SEPARATOR: Final[str] = "|"


@dataclass(frozen=True)
class PipelineSelectionConstants:
    """Thresholds used to pick a canned pipeline for a workbook."""

    SPARSE_EMPTY_PERCENTAGE: Final[float] = 70.0
    SMALL_WORKBOOK_CELLS: Final[int] = 10_000
    MEDIUM_WORKBOOK_CELLS: Final[int] = 100_000

    # Preset step options
    LIGHTWEIGHT_RANGE_THRESHOLD: Final[int] = 2
    STANDARD_MIN_GROUP_SIZE: Final[int] = 3
    HIGH_MIN_GROUP_SIZE: Final[int] = 2
    HIGH_RANGE_THRESHOLD: Final[int] = 2


@dataclass(frozen=True)
class StrategyConstants:
    """Parameter presets for the caller-facing compression strategies."""

    # Balanced
    BALANCED_ANCHOR_THRESHOLD: Final[float] = 0.6
    BALANCED_NEIGHBORHOOD: Final[int] = 2
    BALANCED_MIN_SKELETON_RATIO: Final[float] = 0.5
    BALANCED_MIN_GROUP_SIZE: Final[int] = 3
    BALANCED_LOW_RATIO_WARNING: Final[float] = 0.3

    # Aggressive
    AGGRESSIVE_ANCHOR_THRESHOLD: Final[float] = 0.8
    AGGRESSIVE_NEIGHBORHOOD: Final[int] = 0
    AGGRESSIVE_MIN_SKELETON_RATIO: Final[float] = 0.8
    AGGRESSIVE_MIN_GROUP_SIZE: Final[int] = 2
    AGGRESSIVE_RANGE_THRESHOLD: Final[int] = 2

    # Stricter retry
    RETRY_THRESHOLD_STEP: Final[float] = 0.1
    RETRY_MIN_GROUP_SIZE_FLOOR: Final[int] = 2


# Create singleton instances for easy access
CELL_FORMATTING = CellFormattingConstants()
ANCHOR_DETECTION = AnchorDetectionConstants()
INVERTED_INDEX = InvertedIndexConstants()
PIPELINE_SELECTION = PipelineSelectionConstants()
STRATEGY = StrategyConstants()

# Characters recognized as currency markers
CURRENCY_SYMBOLS: Final[tuple[str, ...]] = ("$", "€", "£", "¥", "₹", "₽", "¢")

# Multilingual boolean literals, compared case-insensitively
BOOLEAN_LITERALS: Final[frozenset[str]] = frozenset(
    {"true", "false", "yes", "no", "si", "verdadero", "falso", "1", "0"}
)
