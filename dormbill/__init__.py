"""
Dormitory billing backend.

Bill composition, monthly bill generation, payment reconciliation and
LINE notification delivery for a dormitory/rental management system.
"""

__version__ = "0.1.0"
