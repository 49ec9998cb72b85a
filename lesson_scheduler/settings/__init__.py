"""
Scoring settings.

Responsibilities:
- Hold the weights and pairing limits used by the recommendation engine.
- Allow administrators to update or reset them at runtime.
"""
