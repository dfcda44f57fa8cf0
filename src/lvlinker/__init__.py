"""
lvlinker - Link Steam library games into a Vortex Wine prefix
"""

__version__ = "3.1.0"
__version_date__ = "2026-10-19"
