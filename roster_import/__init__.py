"""Roster import tool: xlsx user rosters -> nursing-experience backend."""

__version__ = "0.1.0"
