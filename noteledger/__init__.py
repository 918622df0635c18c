"""
Note Ledger - Source Package

Turns loosely-structured, hand-written money notes into categorized
transaction records and a ledger of money lent and received.

DESIGN PRINCIPLES:
1. A bad line never breaks a note
2. Direction follows from category
3. Every view is recomputed from the record collection
4. Storage and presentation are someone else's job
"""

__version__ = "1.0.0"
__author__ = "Note Ledger Team"
