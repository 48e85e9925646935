"""Trending terms over a sliding window of late and out-of-order text events."""

from .api import TrendAPI, build_api
from .models import TrendConfig
from .service_http import create_app

__all__ = ["TrendAPI", "TrendConfig", "build_api", "create_app"]

__version__ = "0.1.0"
