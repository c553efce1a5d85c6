"""
Scoring engine: converts raw answers and department scores into a single
0–100 maturity score with a per-category breakdown.

Modules
-------
scorer   : ScoringEngine (weighted, renormalized, clamped overall score) +
           calculate_department_scores(); pure functions, no DB or I/O.
maturity : classify_maturity(), the maturity band of a 0–100 score.
"""
