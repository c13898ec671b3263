"""
Configuration registry: telephony identities, agents and assignments.
"""
