"""
Data Quality Module
"""
from .anomaly_detector import RedFlagDetector, detect_red_flags
from .dead_stock import detect_dead_stock

__all__ = [
    "RedFlagDetector",
    "detect_red_flags",
    "detect_dead_stock",
]
