"""
BitFrac: fractional asset tokenization ledger.
"""
__version__ = "0.1.0"
