"""
SpendSmart - Source Package

The core of a personal expense tracker: an expense ledger that learns
from the user's category corrections, and pure aggregation views over it.

DESIGN PRINCIPLES:
1. AI suggests → Human corrects or confirms → Corrections teach the AI
2. Corrections outrank confirmations
3. Ledger operations never fail on unknown ids
4. Every mutation is saved and audited
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SpendSmart Team"
