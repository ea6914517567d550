# Overview: Shared helpers for API route handlers.

from flask import request
from werkzeug.exceptions import BadRequest


def json_body() -> dict:
    """
    Request body as a JSON object.

    An empty body reads as {}. Malformed JSON or a body that is not an
    object raises BadRequest, which the app renders as
    400 {"error": "Invalid JSON payload"}. Call it outside route try blocks.
    """
    if not request.get_data(cache=True):
        return {}
    payload = request.get_json(force=True)
    if not isinstance(payload, dict):
        raise BadRequest("JSON body must be an object")
    return payload
