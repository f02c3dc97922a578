"""
Coinshire - Source Package

A shared-expense tracker for two people. Record who paid for something
and how it should be split; Coinshire works out who owes whom.

DESIGN PRINCIPLES:
1. One canonical balance rule, shared by every consumer
2. Balances are derived, never stored
3. The viewer is always explicit (no "current user" globals)
4. Validate at data entry, stay permissive in the engine
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Coinshire Team"
