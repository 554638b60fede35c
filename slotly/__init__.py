"""
slotly - appointment availability for multi-tenant booking front-ends.
"""

__version__ = "0.1.0"
