"""Alexa skill request/response envelopes.

Translates the voice platform's JSON envelope into a delivery Turn and
the session bag it carries, and turns a TurnResult back into a response
envelope.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .delivery import Signal, Turn, TurnResult
from .models import SessionState

logger = logging.getLogger(__name__)

INTENT_SIGNALS: dict[str, Signal] = {
    "Day": Signal.DAY,
    "Scriptures": Signal.SCRIPTURES,
    "AMAZON.YesIntent": Signal.CONTINUE,
    "AMAZON.NextIntent": Signal.CONTINUE,
    "AMAZON.NoIntent": Signal.DECLINE,
    "AMAZON.HelpIntent": Signal.HELP,
    "AMAZON.StopIntent": Signal.STOP,
    "AMAZON.CancelIntent": Signal.CANCEL,
}


class _Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Slot(_Envelope):
    name: str
    value: str | None = None


class Intent(_Envelope):
    name: str
    slots: dict[str, Slot] = Field(default_factory=dict)


class Application(_Envelope):
    application_id: str = Field(alias="applicationId")


class Session(_Envelope):
    new: bool = False
    session_id: str | None = Field(default=None, alias="sessionId")
    application: Application | None = None
    attributes: dict[str, Any] | None = None


class Request(_Envelope):
    type: str
    request_id: str | None = Field(default=None, alias="requestId")
    timestamp: str | None = None
    locale: str | None = None
    intent: Intent | None = None


class RequestEnvelope(_Envelope):
    version: str = "1.0"
    session: Session | None = None
    context: dict[str, Any] | None = None
    request: Request

    @property
    def application_id(self) -> str | None:
        if self.session and self.session.application:
            return self.session.application.application_id
        system = (self.context or {}).get("System") or {}
        application = system.get("application") or {}
        return application.get("applicationId")

    @property
    def attributes(self) -> dict[str, Any]:
        if self.session and self.session.attributes:
            return self.session.attributes
        return {}

    def slot_value(self, name: str) -> str | None:
        intent = self.request.intent
        if intent is None or name not in intent.slots:
            return None
        return intent.slots[name].value or None

    def to_turn(self) -> Turn | None:
        """Map the request onto a delivery turn, or None if it needs no reply."""
        if self.request.type == "LaunchRequest":
            return Turn(Signal.LAUNCH)
        if self.request.type != "IntentRequest" or self.request.intent is None:
            return None

        signal = INTENT_SIGNALS.get(self.request.intent.name)
        if signal is None:
            logger.info(f"Ignoring unknown intent {self.request.intent.name}")
            return None
        return Turn(signal, self.slot_value("date"))

    def session_state(self) -> SessionState | None:
        return SessionState.from_attributes(self.attributes)


def build_response(
    result: TurnResult | None, attributes: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Build the response envelope for a turn result.

    With no result (e.g. SessionEndedRequest) the incoming attributes
    are echoed back and nothing is spoken. They are also echoed, as
    received, when the result asks to keep the session.
    """
    if result is None:
        return {
            "version": "1.0",
            "sessionAttributes": attributes or {},
            "response": {"shouldEndSession": True},
        }

    response: dict[str, Any] = {"shouldEndSession": result.end_session}
    if result.speech:
        response["outputSpeech"] = {"type": "SSML", "ssml": result.speech}
    if result.card_title and result.card is not None:
        response["card"] = {
            "type": "Simple",
            "title": result.card_title,
            "content": result.card,
        }

    if result.keep_session:
        session_attributes = attributes or {}
    elif result.session is not None:
        session_attributes = result.session.to_attributes()
    else:
        session_attributes = {}

    return {
        "version": "1.0",
        "sessionAttributes": session_attributes,
        "response": response,
    }
