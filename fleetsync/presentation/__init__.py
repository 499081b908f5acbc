"""
Presentation Layer Package

HTTP surface of the service: health and info endpoints only.
"""

from fleetsync.presentation import controllers

__all__ = ["controllers"]
