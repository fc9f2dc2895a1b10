from __future__ import annotations

import pytest

from rsconnector.errors import ApiPermissionError, ResourceSpaceError
from rsconnector.infra.http.response import classify_response, ensure_array, normalize_response, to_number


def test_null_is_valid_empty_result():
    assert normalize_response(None, "get_resource_data") is None


def test_json_string_is_parsed():
    assert normalize_response('{"ref":42}', "create_resource") == {"ref": 42}


def test_plain_url_is_returned_as_is():
    url = "https://dam.example.com/filestore/1_pre.jpg"

    assert normalize_response(url, "get_resource_path") == url


def test_access_denied_text_raises_permission_error():
    with pytest.raises(ApiPermissionError) as exc:
        normalize_response("Access denied", "save_user")

    assert exc.value.code == "PERMISSION_DENIED"
    assert exc.value.function_name == "save_user"


def test_error_text_raises_api_error():
    with pytest.raises(ResourceSpaceError) as exc:
        normalize_response("Error: invalid resource", "get_resource_data")

    assert not isinstance(exc.value, ApiPermissionError)
    assert exc.value.code == "API_ERROR"
    assert exc.value.rs_error == "Error: invalid resource"


def test_error_object_raises_api_error():
    with pytest.raises(ResourceSpaceError) as exc:
        normalize_response({"error": "x"}, "do_search")

    assert exc.value.rs_error == "x"


def test_empty_error_object_uses_unknown_error():
    result = classify_response({"error": ""})

    assert result.kind == "api_error"
    assert result.detail == "Unknown error"


def test_long_error_detail_is_truncated():
    result = classify_response("Error: " + "x" * 500)

    assert not result.ok
    assert len(result.detail) == 200


def test_other_values_pass_through():
    assert normalize_response([], "do_search") == []
    assert normalize_response(0, "get_user_ref") == 0
    assert normalize_response(False, "delete_resource") is False


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        ([1, 2], [1, 2]),
        (None, []),
        ({"resources": [{"ref": 1}]}, [{"ref": 1}]),
        ({"data": ["a"]}, ["a"]),
        ({"other": 1}, []),
        ("text", []),
        (42, []),
    ],
)
def test_ensure_array(data, expected):
    assert ensure_array(data) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, None),
        (True, None),
        (7, 7),
        (3.5, 3.5),
        (float("nan"), None),
        (float("inf"), None),
        ("42", 42),
        ("42abc", 42),
        (" -7", -7),
        ("abc", None),
        ([], None),
    ],
)
def test_to_number(value, expected):
    assert to_number(value) == expected
