"""
CivicLens - Civic-issue reporting backend
AI photo classification, report storage, leaderboards and profiles.
"""

__version__ = "0.1.0"
