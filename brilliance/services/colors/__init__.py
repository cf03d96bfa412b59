"""
Brilliance Colors Module

Dominant color extraction with gray exclusion, frequency counting and an
adaptive tolerance retry loop, plus the fluent builder around it.
"""

__version__ = "1.0.0"
