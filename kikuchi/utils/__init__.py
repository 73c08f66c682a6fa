"""Utility functions and classes used throughout kikuchi."""
