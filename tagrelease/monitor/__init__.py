"""Terminal rendering for tagrelease.

Modules
-------
renderer
    ``SummaryRenderer`` turns ``RunSummary``, descriptor sets and ledger
    entries into Rich renderables.
"""
