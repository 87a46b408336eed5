"""Domain layer: tiers, catalog, pool, events and the account aggregate.

Everything here is synchronous and free of I/O.
"""
