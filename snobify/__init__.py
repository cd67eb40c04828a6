"""
Snobify - music library analytics from playlist exports.
"""

__version__ = "0.3.0"
