"""
CivicLens - REST API package
"""
