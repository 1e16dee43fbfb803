"""Configuration package for the Travelogues catalog"""

from .settings import TraveloguesConfig

__all__ = ['TraveloguesConfig']
