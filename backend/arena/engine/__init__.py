"""Odds & payout engine for battle voting.

Pure, side-effect-free building blocks:

- ``odds``: pari-mutuel odds, distribution, payouts
- ``phase``: open / closing / closed state machine
- ``validation``: wager admission rules
- ``settlement``: outcome and per-wager resolution
- ``errors``: error kinds, exceptions and result wrapper

Nothing in this package imports from ``arena.services`` or ``arena.models``.
"""
