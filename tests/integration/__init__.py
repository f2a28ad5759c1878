"""
Integration tests against a running Redis (USE_REAL_REDIS=1).
"""
