"""
Retail Admin Backend

Products, sales history, warehouse stock levels and revenue aggregates.
"""

__version__ = "1.0.0"
