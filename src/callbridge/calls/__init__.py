"""
Call flows: two-leg bridging, one-leg browser calls, recording reconciliation.
"""
