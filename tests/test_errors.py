from taskline.errors import (
    ErrorResponse,
    TaskNotFoundError,
    TasklineError,
    error_response,
    success_response,
)


def test_error_response_serializes_details():
    error = ErrorResponse(code="PATH_TRAVERSAL", message="Nope", details={"path": ".."})

    assert error.to_dict() == {
        "code": "PATH_TRAVERSAL",
        "message": "Nope",
        "details": {"path": ".."},
    }


def test_taskline_error_defaults_details():
    exc = TasklineError("INVALID_TYPE", "Bad path")

    assert exc.error.to_dict() == {
        "code": "INVALID_TYPE",
        "message": "Bad path",
        "details": {},
    }


def test_task_not_found_error_carries_id():
    exc = TaskNotFoundError("/notes/a.md:3")

    assert isinstance(exc, TasklineError)
    assert exc.error.code == "TASK_NOT_FOUND"
    assert exc.error.details == {"id": "/notes/a.md:3"}


def test_response_envelopes():
    assert success_response({"count": 1}) == {"ok": True, "data": {"count": 1}}
    assert error_response(ErrorResponse("X", "y")) == {
        "ok": False,
        "error": {"code": "X", "message": "y", "details": {}},
    }
