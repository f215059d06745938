"""Retirement savings projection: calendar math, annuity projection and a Flask API."""

__version__ = "0.1.0"
