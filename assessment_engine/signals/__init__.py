"""
Signal engine: weak answers → typed, deduplicated, ranked signals.

Modules
-------
detector : Signal dataclass, severity rules and SignalEngine. Pure; no I/O.
"""
