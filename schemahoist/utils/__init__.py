"""Helpers shared by the analysis and compiler packages."""
