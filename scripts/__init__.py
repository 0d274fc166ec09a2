"""
Scripts for AdherenceLens
Command-line entry points for batch jobs
"""

from .run_correlation_analysis import run, main

__all__ = [
    "run",
    "main"
]
