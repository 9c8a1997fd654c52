"""
Savings Buckets - Source Package

A personal savings ledger: one pool of money split into named buckets,
with deposits divided by allocation percentage, withdrawals taken
proportionally or from one bucket, and reallocations between buckets.

DESIGN PRINCIPLES:
1. Money is Decimal, rounded to cents after every operation
2. State changes only through the pure reducer
3. Validation reports, it never fixes
4. The transaction log can always rebuild the history
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Savings Buckets Team"
