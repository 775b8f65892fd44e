"""Ledger Indexer - read-only projection of agent, task and launchpad contracts."""

__version__ = "0.1.0"
