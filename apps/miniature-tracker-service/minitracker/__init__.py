"""Persistence and photo storage core for the miniature painting tracker."""

__version__ = "1.0.0"
