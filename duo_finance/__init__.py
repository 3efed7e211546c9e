"""
Duo Finance - Source Package

A shared personal-finance tracker for couples: income and expense
transactions, a collaborative shopping list with a budget, and an AI
assistant that answers from a locally computed summary of the
user's own transactions.

DESIGN PRINCIPLES:
1. Totals are recomputed from stored transactions, never cached
2. Fail early, fail visibly
3. No silent corrections
4. Every user action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Duo Finance Team"
