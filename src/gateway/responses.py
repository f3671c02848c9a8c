"""Acknowledgments written back to the webhook caller."""

from __future__ import annotations

from fastapi.responses import JSONResponse

from src.models import ConversationStarted, IncomingMessage


def write_msg_success(msgs: list[IncomingMessage]) -> JSONResponse:
    data = [
        {
            "type": "msg",
            "channel_uuid": msg.channel_uuid,
            "msg_uuid": msg.uuid,
            "text": msg.text,
            "urn": str(msg.urn),
            "attachments": list(msg.attachments),
            "external_id": msg.external_id,
            "received_on": msg.received_on.isoformat(),
        }
        for msg in msgs
    ]
    return JSONResponse({"message": "Message Accepted", "data": data}, status_code=200)


def write_channel_event_success(event: ConversationStarted) -> JSONResponse:
    data = [{
        "type": "event",
        "channel_uuid": event.channel_uuid,
        "event_uuid": event.uuid,
        "event_type": event.event_type.value,
        "urn": str(event.urn),
        "received_on": event.occurred_on.isoformat(),
    }]
    return JSONResponse({"message": "Event Accepted", "data": data}, status_code=200)


def write_ignored(details: str) -> JSONResponse:
    return JSONResponse(
        {"message": "Ignored", "data": [{"type": "info", "info": details}]},
        status_code=200,
    )


def write_error(err: Exception, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        {"message": "Error", "data": [{"type": "error", "error": str(err)}]},
        status_code=status_code,
    )
