"""rive2d - Live2D LPK package extraction."""

__version__ = "0.1.0"
