"""
CivicLens - Vercel Serverless Entry Point
Exposes the FastAPI application as the serverless handler
"""

import os
import sys

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from civiclens.api.main import app

# Vercel serverless handler
handler = app
