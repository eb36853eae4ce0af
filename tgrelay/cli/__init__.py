"""tgrelay CLI — Typer-based command-line interface.

Provides the ``tgrelay`` command for registering the webhook, checking the
bot account, inspecting identity tags, listing tracked users, and replaying
saved updates.

All output uses Rich for formatted terminal display.
"""
