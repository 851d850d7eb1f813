"""
Query API (FastAPI)

HTTP API for the commitment indexer:
- GET /root - Current root
- GET /path/{leaf_index} - Inclusion path by index
- GET /path/commitment/{commitment} - Inclusion path by commitment
- GET /pending-roots - Roots awaiting submission
- POST /submit-root, POST /submit-all-roots - Administrative submission
- GET /health - Health check

Usage:
    uvicorn api.app:app --port 4000
"""

__version__ = "0.1.0"
