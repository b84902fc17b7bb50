"""Errors helper coverage."""

from __future__ import annotations

import pytest
from safe_fetch.errors import SafeError, internal_error, safe_error_to_result, to_error_result


def test_error_result_shape() -> None:
    assert to_error_result(code="UserInput", message="bad") == {
        "ok": False,
        "code": "UserInput",
        "message": "bad",
    }
    assert to_error_result(code="Fetch", message="no", hint="h")["hint"] == "h"


def test_safe_error_converts_to_envelope() -> None:
    err = SafeError(code="NotFound", message="File not found: x", hint="check the path")
    assert safe_error_to_result(err) == {
        "ok": False,
        "code": "NotFound",
        "message": "File not found: x",
        "hint": "check the path",
    }


def test_safe_error_is_raisable() -> None:
    with pytest.raises(SafeError) as exc_info:
        raise SafeError(code="Fetch", message="HTTP 404: Not Found", status_code=404)
    assert exc_info.value.status_code == 404


def test_internal_error_shape() -> None:
    out = internal_error()
    assert out["ok"] is False
    assert out["code"] == "Internal"
