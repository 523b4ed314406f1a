"""
M&A Deal Analyzer

Financial calculation engine and calculation API for M&A deal analysis.
"""

__version__ = "0.1.0"
