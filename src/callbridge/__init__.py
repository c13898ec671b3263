"""
Callbridge: Twilio click-to-call bridging for HubSpot contacts.
"""

__version__ = "0.1.0"
