"""Compression components: recognizers, aggregator, inverted index, pipeline.

Strategy orchestration lives in :mod:`gridpress.compression.strategies`, which
also depends on :mod:`gridpress.detectors`, and is imported from there.
"""

from .factory import CompressionPipelineFactory, PipelineKind
from .format_aggregator import FormatAwareAggregator
from .inverted_index import InvertedIndexTranslator, compact_addresses
from .options import (
    AnchorDetectionOptions,
    FormatAggregationOptions,
    InvertedIndexOptions,
    SkeletonExtractionOptions,
)
from .pipeline import CompressionPipeline, PipelineBuilder, PipelineContext
from .steps import FormatAggregationStep, InvertedIndexStep, PipelineStep
from .type_recognizers import DEFAULT_RECOGNIZERS, TypeInfo, TypeRecognizer, determine_type
from .vanilla import VanillaSerializationOptions, VanillaSerializer

__all__ = [
    "AnchorDetectionOptions",
    "CompressionPipeline",
    "CompressionPipelineFactory",
    "DEFAULT_RECOGNIZERS",
    "FormatAggregationOptions",
    "FormatAggregationStep",
    "FormatAwareAggregator",
    "InvertedIndexOptions",
    "InvertedIndexStep",
    "InvertedIndexTranslator",
    "PipelineBuilder",
    "PipelineContext",
    "PipelineKind",
    "PipelineStep",
    "SkeletonExtractionOptions",
    "TypeInfo",
    "TypeRecognizer",
    "VanillaSerializationOptions",
    "VanillaSerializer",
    "compact_addresses",
    "determine_type",
]
