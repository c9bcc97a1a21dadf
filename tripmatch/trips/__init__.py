"""
Trip listings.

Responsibilities:
- Hold the in-memory trip store, seeded from a CSV file on first use.
- Expose tabular views of the store for filtering and aggregation.
- Apply creation, join, update and delete rules on behalf of the API.
"""
