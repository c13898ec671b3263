"""
CRM (HubSpot) integration.
"""
