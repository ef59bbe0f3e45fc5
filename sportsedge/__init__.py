"""
Sports data layer: provider adapters, entity resolution and market-edge detection.
"""

__version__ = "0.3.0"
