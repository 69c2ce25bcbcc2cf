"""
Admin dashboard state layer: an HTTP client for the portfolio API and
per-resource state containers that track loading, errors and messages.
"""

from dashboard_client.api import ApiError, PortfolioApi
from dashboard_client.slices import DashboardStore

__all__ = ["ApiError", "DashboardStore", "PortfolioApi"]
