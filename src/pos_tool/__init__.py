"""
POS Tool Package

Point-of-sale administration: product catalog, member registry, sales history
and a cashier checkout built on the cart pricing engine
(Manual → Member → Bulk → Base price resolution).
"""

__version__ = "1.0.0"
