"""
Airtime Sales Package

Sales management for a radio station's advertising inventory.
Prices broadcast orders using Window → Days → Discount Tier → VAT pipeline
and renders customer quotations from the stored results.
"""

__version__ = "1.0.0"
