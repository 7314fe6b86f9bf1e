"""Translate NLU results into Slack reply payloads."""

from typing import Any

import structlog

logger = structlog.get_logger()

# Returned when there is nothing to send
EMPTY_REPLY = ""


def translate(result: Any) -> dict[str, Any] | str:
    """Build a Slack reply from an NLU ``result`` object.

    A ``fulfillment.data.slack`` object is passed through unchanged so
    agents can return rich messages; a bare string there is sent as text.
    Otherwise non-empty ``speech`` is
    wrapped as a text reply. Anything else, malformed input included,
    yields ``EMPTY_REPLY``.
    """
    if not isinstance(result, dict):
        return EMPTY_REPLY

    fulfillment = result.get("fulfillment")
    if not isinstance(fulfillment, dict):
        return EMPTY_REPLY

    data = fulfillment.get("data")
    if isinstance(data, dict) and data.get("slack"):
        slack = data["slack"]
        if isinstance(slack, dict):
            return slack
        if isinstance(slack, str):
            return {"text": slack}
        logger.warning("Ignoring unsupported Slack payload", payload_type=type(slack).__name__)
    elif data is not None and not isinstance(data, dict):
        logger.warning("Ignoring non-object fulfillment data", data_type=type(data).__name__)

    speech = fulfillment.get("speech")
    if isinstance(speech, str) and speech:
        return {"text": speech}

    return EMPTY_REPLY
