"""
Sargassum Drift Visualization Engine.

Turns sargassum drift predictions into animated map frames, particle
density fields and coastal risk statistics.
"""

__version__ = '1.0.0'
