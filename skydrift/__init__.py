"""SkyDrift: balloon track reconstruction and wind drift analysis."""

__version__ = "0.1.0"
