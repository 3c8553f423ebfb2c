"""
CLI Module - Command Line Interface for taskmaster.
"""

from .app import create_parser, main, run
from .exit_codes import ExitCode


__all__ = ["ExitCode", "create_parser", "main", "run"]
