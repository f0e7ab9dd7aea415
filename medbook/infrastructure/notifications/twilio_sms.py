from typing import Optional

from twilio.rest import Client

from ...config import Settings, settings
from ...application.ports.notifier import SmsSender


class TwilioSmsSender(SmsSender):
    def __init__(self, client: Optional[Client] = None, from_number: Optional[str] = None, messaging_service_sid: Optional[str] = None):
        self.client = client or Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        self.from_number = from_number if from_number is not None else settings.TWILIO_FROM
        self.messaging_service_sid = (
            messaging_service_sid if messaging_service_sid is not None else settings.TWILIO_MESSAGING_SERVICE_SID
        )

    def send(self, to: str, body: str) -> str:
        params = {"to": to, "body": body}
        # Twilio needs either a sender number or a messaging service
        if self.from_number:
            params["from_"] = self.from_number
        elif self.messaging_service_sid:
            params["messaging_service_sid"] = self.messaging_service_sid
        else:
            raise RuntimeError("Twilio configuration error: set TWILIO_FROM or TWILIO_MESSAGING_SERVICE_SID")
        message = self.client.messages.create(**params)
        return message.sid


def build_sms_sender(config: Settings = settings) -> Optional[TwilioSmsSender]:
    """Twilio sender when credentials are configured, otherwise None."""
    if not (config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN):
        return None
    return TwilioSmsSender(
        client=Client(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN),
        from_number=config.TWILIO_FROM,
        messaging_service_sid=config.TWILIO_MESSAGING_SERVICE_SID,
    )
