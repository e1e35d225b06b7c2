"""Partition-aware document repository for the drone scheduler service."""

__version__ = "1.0.0"
