"""Ingestion layer.

This package contains the two acquisition strategies that feed the
detection pipeline: continuous feed polling and historical batch scans.
"""

__all__: list[str] = []
