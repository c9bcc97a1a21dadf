"""
TripMatch travel-planning service.

Responsibilities:
- Manage traveler accounts and free-tier usage quotas.
- Store trip listings and let travelers create, join and browse them.
- Score and rank trip listings against a traveler's match criteria.
- Expose an admin back-office over users, trips and search analytics.
"""
