"""Version information for pick-dashboard."""

__version__ = "1.0.0"
__version_date__ = "2026-10-19"

__title__ = "pick_dashboard"
__description__ = "Order-picking throughput dashboard with per-order and per-worker rollups"

__author__ = "Pick Dashboard Developers"

__license__ = "MIT"
__copyright__ = "Copyright 2026 Pick Dashboard Developers"

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
]
