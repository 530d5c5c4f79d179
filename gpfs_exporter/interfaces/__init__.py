"""
Interface definitions for gpfs_exporter.

Available Interfaces:
    - CollectorInterface: Contract for every GPFS metric collector

Example Usage:
    from gpfs_exporter.interfaces import CollectorInterface

    class MyCollector(CollectorInterface):
        name = "mine"
        # ... implement describe(), collect() and timeout
"""

from gpfs_exporter.interfaces.collector import CollectorInterface

__all__ = [
    "CollectorInterface",
]
