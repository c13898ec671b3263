"""
Telephony package (Twilio REST calls, TwiML documents, access tokens).

Keep package import side-effects to a minimum to avoid circular imports.
"""
