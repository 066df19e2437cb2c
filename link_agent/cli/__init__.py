# CLI module for the MAAS link agent
from .commands import CLICommands, build_cli

__all__ = ["CLICommands", "build_cli"]
