"""
FinLedger: personal finance tracking backend
"""

__version__ = "0.1.0"
