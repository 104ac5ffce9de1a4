"""Engine class and command-line entry points under one import.

``secureflow.main:main`` is the console-script target; ``cli`` runs the
argument parser without the Ctrl-C handling.
"""

from .cli import cli, main
from .engine import secureflow

__all__ = ["secureflow", "cli", "main"]
