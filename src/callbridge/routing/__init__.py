"""
Call routing: registry lookups and bridge continuation state.
"""
