"""
Voice-control (TwiML) documents returned to Twilio.

Every document is a single <Dial> to a <Number>, or a <Say> carrying an
error message. Twilio reads out anything that is not valid TwiML, so error
paths render a document instead of raising.
"""

from twilio.twiml.voice_response import VoiceResponse

RECORD_FROM_ANSWER = "record-from-answer"


def dial_document(
    caller_id: str,
    destination: str,
    recording_callback_url: str | None = None,
) -> str:
    """Dial `destination` presenting `caller_id`.

    With a recording callback, the call is recorded from answer and Twilio
    POSTs to the callback once, when the recording completes.
    """
    response = VoiceResponse()
    if recording_callback_url:
        dial = response.dial(
            caller_id=caller_id,
            record=RECORD_FROM_ANSWER,
            recording_status_callback=recording_callback_url,
            recording_status_callback_method="POST",
            recording_status_callback_event="completed",
        )
    else:
        dial = response.dial(caller_id=caller_id)
    dial.number(destination)
    return str(response)


def error_document(message: str) -> str:
    response = VoiceResponse()
    response.say(message)
    return str(response)
