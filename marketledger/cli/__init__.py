"""Marketledger CLI — Typer-based command-line interface.

Provides the ``marketledger`` command with subcommands for running the demo
scenario and inspecting a ledger database.

All output uses Rich for formatted terminal display.
"""
