"""Live electrical telemetry dashboard."""

# Import key modules for easy access
from . import config_loader as config_loader
from . import monitoring as monitoring

# Version information
__version__ = "0.1.0"
__author__ = "Electric Dashboard Team"

# Expose commonly used classes
from .config_loader import load_config as load_config
from .monitoring.classifier import classify as classify
from .session import DashboardSession as DashboardSession

__all__ = [
    "config_loader",
    "monitoring",
    "load_config",
    "classify",
    "DashboardSession",
]
