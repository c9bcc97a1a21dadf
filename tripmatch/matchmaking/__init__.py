"""
Trip matchmaking.

Responsibilities:
- Accept a traveler's destination, dates, budget, interests and travel style.
- Pre-filter the trip store to destination-matching, open candidates.
- Score candidates with the five-factor compatibility heuristic.
- Return the top matches ready for API serialisation.
"""
