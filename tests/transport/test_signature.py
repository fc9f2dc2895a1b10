from __future__ import annotations

import hashlib

from rsconnector.infra.http.query_builder import build_query_string, build_signed_query
from rsconnector.infra.http.signature import constant_time_equals, sign

SECRET = "s" * 64


def test_sign_is_sha256_hex_of_secret_then_query():
    expected = hashlib.sha256(b"abcprincipal=admin&function=x").hexdigest()

    assert sign("abc", "principal=admin&function=x") == expected
    assert len(expected) == 64
    assert expected == expected.lower()


def test_query_starts_with_principal_then_function():
    signed = build_signed_query("admin", SECRET, "apiKey", "do_search", {"search": "cat"})

    assert signed.query == "principal=admin&function=do_search&search=cat"
    assert signed.sign == sign(SECRET, signed.query)


def test_signature_is_identical_for_both_auth_modes():
    api = build_signed_query("admin", SECRET, "apiKey", "get_users", {"find": "bob"})
    session = build_signed_query("admin", SECRET, "sessionKey", "get_users", {"find": "bob"})

    assert api.sign == session.sign
    assert "authmode" not in api.query
    assert session.query == api.query + "&authmode=sessionkey"


def test_none_values_are_dropped_and_bools_rendered():
    query = build_query_string("u", {"a": None, "b": True, "c": False, "n": 5})

    assert query == "principal=u&b=true&c=false&n=5"


def test_special_characters_are_encoded_before_signing():
    signed = build_signed_query("admin", SECRET, "apiKey", "do_search", {"search": "a b&c=d"})

    assert signed.query.endswith("search=a+b%26c%3Dd")
    assert signed.sign == sign(SECRET, signed.query)


def test_caller_cannot_override_function_name():
    signed = build_signed_query("admin", SECRET, "apiKey", "get_resource_data", {"function": "delete_resource"})

    assert signed.query == "principal=admin&function=get_resource_data"


def test_constant_time_equals():
    digest = sign(SECRET, "principal=admin")

    assert constant_time_equals(digest, sign(SECRET, "principal=admin"))
    assert not constant_time_equals(digest, sign(SECRET, "principal=other"))
