"""
Sprint Poker - Planning-poker bot for sprint estimation

A chat bot that runs planning-poker sessions over a tasklist.
The engine keeps each session as immutable snapshots and provides:
- A pure reducer producing ordered notification effects
- PERT consensus over each round's votes
- One serialized worker per session
- Chat and task-tracker providers behind abstract interfaces
"""

__version__ = "0.1.0"
