"""
taskmaster - local task management with ticketing system synchronization.
"""

__version__ = "0.9.0"
