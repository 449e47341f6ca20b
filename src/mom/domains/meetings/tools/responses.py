"""JSON rendering shared by the meeting tools."""

from __future__ import annotations

import json
import logging
from typing import Any

from mom.core.errors import MomError, describe_error
from mom.core.view.screen import ViewState

logger = logging.getLogger(__name__)


def ok(payload: dict[str, Any]) -> str:
    return json.dumps({"status": "ok", **payload}, default=str)


def error_response(exc: Exception, tool_name: str) -> str:
    """Render an exception as the tools' error shape.

    Engine errors are expected and rendered as-is; anything else is logged
    with its traceback and reported as ``internal_error``.
    """
    if isinstance(exc, MomError):
        logger.info("%s rejected: %s", tool_name, describe_error(exc))
        body = {"status": "error", "error_type": exc.error_type, "message": describe_error(exc)}
        status_code = getattr(exc, "status_code", None)
        if status_code is not None:
            body["status_code"] = status_code
        return json.dumps(body)

    logger.exception("Unexpected failure in %s", tool_name)
    return json.dumps({
        "status": "error",
        "error_type": "internal_error",
        "message": describe_error(exc),
    })


def view_payload(collection: str, state: ViewState) -> dict[str, Any]:
    return {"collection": collection, **state.to_dict()}
