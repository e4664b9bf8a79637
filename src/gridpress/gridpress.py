"""Main GridPress class."""

import asyncio
import logging

import pandas as pd

from .compression.strategies import CompressionRequest, CustomStrategyConfig, WorkbookCompressor
from .compression.vanilla import VanillaSerializationOptions, VanillaSerializer
from .config import Config
from .models.compression import CompressionReport, CompressionStrategy
from .models.workbook import WorkbookContext
from .readers import DataFrameReader
from .telemetry import MetricsCollector, get_metrics_collector

logger = logging.getLogger(__name__)


class GridPress:
    """Token-efficient text rendering of spreadsheets for language models."""

    def __init__(
        self,
        config: Config | None = None,
        default_strategy: CompressionStrategy | str | None = None,
        target_token_limit: int | None = None,
        metrics: MetricsCollector | None = None,
        **kwargs,
    ):
        """Initialize GridPress.

        Args:
            config: Configuration object. If None, loads from environment.
            default_strategy: Override for the default strategy
            target_token_limit: Override for the token budget
            metrics: Collector to record into; implies telemetry
            **kwargs: Additional config overrides
        """
        # Load base config
        if config is None:
            config = Config.from_env()

        # Apply overrides
        if default_strategy is not None:
            config.default_strategy = CompressionStrategy(default_strategy)
        if target_token_limit is not None:
            config.target_token_limit = target_token_limit

        # Apply any additional kwargs
        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)

        self.config = config
        self._setup_logging()
        self.metrics = metrics or self._setup_telemetry()

        serializer = VanillaSerializer(
            VanillaSerializationOptions(max_cells=config.vanilla_max_cells)
        )
        self._compressor = WorkbookCompressor(
            serializer=serializer,
            metrics=self.metrics,
            neighborhood=config.anchor_neighborhood,
            max_header_depth=config.max_header_depth,
        )
        self._reader = DataFrameReader()

        logger.info(f"GridPress initialized with config: {config}")

    def _setup_logging(self) -> None:
        """Setup logging configuration."""
        logging.basicConfig(
            level=getattr(logging, self.config.log_level.upper()),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            filename=self.config.log_file,
        )

    def _setup_telemetry(self) -> MetricsCollector | None:
        """Return the global metrics collector when telemetry is enabled."""
        if not self.config.enable_telemetry:
            return None
        logger.info("Telemetry enabled")
        return get_metrics_collector()

    async def compress(
        self,
        workbook: WorkbookContext,
        strategy: CompressionStrategy | str | None = None,
        target_token_limit: int | None = None,
        custom: CustomStrategyConfig | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> CompressionReport:
        """Compress a loaded workbook.

        Args:
            workbook: Workbook produced by a loader
            strategy: Strategy for this call; defaults to the configured one
            target_token_limit: Token budget for this call; defaults to the configured one
            custom: Settings for the custom strategy
            cancel_event: Set to abort between worksheets or steps

        Returns:
            CompressionReport with text, token counts, warnings and statistics

        Raises:
            ConfigurationError: If the custom strategy is requested without settings
            CompressionCancelledError: If ``cancel_event`` is set during the run
        """
        request = CompressionRequest(
            strategy=CompressionStrategy(strategy or self.config.default_strategy),
            include_formatting=self.config.include_formatting,
            include_formulas=self.config.include_formulas,
            target_token_limit=target_token_limit or self.config.target_token_limit,
            custom=custom,
        )
        return await self._compressor.compress(workbook, request, cancel_event)

    async def compress_frames(
        self,
        frames: dict[str, pd.DataFrame],
        strategy: CompressionStrategy | str | None = None,
        target_token_limit: int | None = None,
        number_formats: dict[str, str] | None = None,
    ) -> CompressionReport:
        """Compress DataFrames, one worksheet per entry."""
        workbook = self._reader.read(frames, number_formats=number_formats)
        return await self.compress(workbook, strategy, target_token_limit)
