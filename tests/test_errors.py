from consul_sd.errors import CheckRegistrationError, ClientCreationError


def test_check_registration_error_to_dict():
    error = CheckRegistrationError("abc", {"Disk Usage": "timeout", "RAM Usage": "refused"})

    assert error.failed_checks == ["Disk Usage", "RAM Usage"]
    assert error.to_dict() == {
        "error_code": "CHECK_REGISTRATION_FAILED",
        "message": "Failed to register health checks for service abc: Disk Usage, RAM Usage",
        "details": {
            "service_id": "abc",
            "failures": {"Disk Usage": "timeout", "RAM Usage": "refused"},
        },
    }


def test_client_creation_error_message():
    error = ClientCreationError("http://127.0.0.1:8500", "connection refused")

    assert str(error) == error.message
    assert error.to_dict()["details"]["address"] == "http://127.0.0.1:8500"
