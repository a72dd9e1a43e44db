"""
Operations Facade - Application service layer.

Provides a clean interface between the CLI and the conversion core,
centralizing configuration and progress reporting while keeping the CLI
command thin and testable.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..converter import ConversionResult, ProgressCallback, convert_chart
from ..settings import Settings
from .printers import print_status


@dataclass(frozen=True)
class OpsConfig:
    """
    Configuration for Operations facade.

    Centralizes output policy so the CLI does not scatter it.
    """
    quiet: bool = False           # Suppress progress lines
    verbose: bool = False         # Show detailed output


class Operations:
    """
    Application service facade for CLI operations.

    The facade is stateless except for injected config and settings.
    Exceptions bubble up unchanged for central mapping in
    ``operations.mappers.run_and_exit``.
    """

    def __init__(self, config: OpsConfig, settings: Optional[Settings] = None):
        """
        Initialize Operations facade.

        Args:
            config: Configuration settings
            settings: Optional settings (if None, loaded from environment)
        """
        self.cfg = config

        if settings is None:
            from ..settings import create_settings_from_env
            settings = create_settings_from_env()
        self.settings = settings

    def _progress(self) -> Optional[ProgressCallback]:
        return None if self.cfg.quiet else print_status

    def convert(self, chart: str | Path, output: Optional[str | Path] = None, *,
                tag: Optional[str] = None) -> ConversionResult:
        """
        Convert a packaged chart into a fresh OCI layout.

        Args:
            chart: Path to the chart archive
            output: Output layout directory (defaults to the chart name)
            tag: Reference tag override (defaults to the chart version)

        Returns:
            Result describing the written layout
        """
        return convert_chart(
            chart,
            output,
            tag=tag,
            settings=self.settings,
            progress=self._progress(),
        )
