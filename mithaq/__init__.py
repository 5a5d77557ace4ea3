"""
Mithaq Matching Core

Matchmaking backend: turns user and preference data into ranked,
explainable compatibility outcomes and governs how a swipe becomes a
persisted match under guardian oversight.

Layers:
- shared         Result envelope, error taxonomy, canonical hashing
- users          User / profile / preferences / guardian models
- agents         Capability agents, oracle client, agent dispatcher
- compatibility  Multi-dimensional compatibility scoring
- matching       Preference filter, match lifecycle, caller-facing service
- storage        Store abstraction (in-memory, PostgreSQL)
"""

__version__ = "1.0.0"
