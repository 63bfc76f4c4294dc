"""
Epoxiron Package

Backend for an epoxy coating workshop: customers with their rates,
delivery notes (albaranes) and line-item pricing.
"""

__version__ = "1.0.0"
