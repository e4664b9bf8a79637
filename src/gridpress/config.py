"""Configuration model for GridPress."""

from pathlib import Path

from pydantic import BaseModel, Field

from .models.compression import CompressionStrategy


class Config(BaseModel):
    """Configuration for GridPress."""

    # Compression Configuration
    default_strategy: CompressionStrategy = Field(
        CompressionStrategy.BALANCED, description="Strategy used when a call does not name one"
    )
    include_formatting: bool = Field(
        True, description="Let styles and number formats shape anchors and output"
    )
    include_formulas: bool = Field(True, description="Preserve formula cells")
    target_token_limit: int | None = Field(
        None, ge=1, description="Token budget; exceeding it triggers one stricter retry"
    )

    # Structure Detection Configuration
    anchor_neighborhood: int = Field(
        2, ge=0, le=10, description="Rows/columns kept around each anchor (k)"
    )
    max_header_depth: int = Field(3, ge=1, le=10, description="Rows scanned for stacked headers")

    # Baseline Rendering
    vanilla_max_cells: int | None = Field(
        None, ge=1, description="Truncate the uncompressed rendering after this many cells"
    )

    # Telemetry Configuration
    enable_telemetry: bool = Field(False, description="Enable OpenTelemetry metrics")

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    log_file: Path | None = Field(None, description="Log file path")

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables.

        This method will automatically load from a .env file if present, then read
        configuration from ``GRIDPRESS_*`` environment variables.
        """
        import os

        from dotenv import load_dotenv

        # Load .env file if it exists (will not override existing env vars)
        load_dotenv()

        target_token_limit = os.getenv("GRIDPRESS_TARGET_TOKEN_LIMIT")
        vanilla_max_cells = os.getenv("GRIDPRESS_VANILLA_MAX_CELLS")
        log_file = os.getenv("GRIDPRESS_LOG_FILE")

        return cls(
            # Compression Configuration
            default_strategy=CompressionStrategy(
                os.getenv("GRIDPRESS_DEFAULT_STRATEGY", "balanced").lower()
            ),
            include_formatting=os.getenv("GRIDPRESS_INCLUDE_FORMATTING", "true").lower() == "true",
            include_formulas=os.getenv("GRIDPRESS_INCLUDE_FORMULAS", "true").lower() == "true",
            target_token_limit=int(target_token_limit) if target_token_limit else None,
            # Structure Detection Configuration
            anchor_neighborhood=int(os.getenv("GRIDPRESS_ANCHOR_NEIGHBORHOOD", "2")),
            max_header_depth=int(os.getenv("GRIDPRESS_MAX_HEADER_DEPTH", "3")),
            # Baseline Rendering
            vanilla_max_cells=int(vanilla_max_cells) if vanilla_max_cells else None,
            # Telemetry Configuration
            enable_telemetry=os.getenv("GRIDPRESS_ENABLE_TELEMETRY", "false").lower() == "true",
            # Logging
            log_level=os.getenv("GRIDPRESS_LOG_LEVEL", "INFO"),
            log_file=Path(log_file) if log_file else None,
        )
