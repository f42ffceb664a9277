"""Command implementations invoked from lines.cli."""
