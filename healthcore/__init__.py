"""Health-metric derivation engine.

This package holds the domain models and the pure derivation logic
(sessions, change classification, scores and insights), isolated from
storage and presentation so it can be tested and reasoned about directly.
"""
