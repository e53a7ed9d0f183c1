"""rattlebrain: Rocket League replay telemetry to tables, plots and coaching notes."""

from .version import get_package_version

__version__ = get_package_version()
__author__ = "rattlebrain contributors"
__description__ = "Rocket League replay telemetry to tables, plots and coaching notes"
