from __future__ import annotations

import asyncio

import pytest

from rsconnector.capabilities import with_resources, with_upload
from rsconnector.domain.models import ResourcePathOptions
from rsconnector.errors import ResourceSpaceError, ValidationError


@pytest.mark.parametrize("bad_ref", [0, -1, "5", True, 1.5, None])
def test_invalid_ref_rejected_before_request(rs_server, make_client, bad_ref):
    server = rs_server({})
    client = make_client(server, with_resources)

    with pytest.raises(ValidationError):
        asyncio.run(client.get_resource(bad_ref))

    assert server.calls == []


def test_get_resource(rs_server, make_client):
    server = rs_server({"get_resource_data": {"ref": 5, "title": "Cat"}})
    client = make_client(server, with_resources)

    assert asyncio.run(client.get_resource(5)) == {"ref": 5, "title": "Cat"}
    assert server.calls[0]["resource"] == "5"

    server.responses["get_resource_data"] = []
    assert asyncio.run(client.get_resource(5)) is None


def test_resource_path_is_rewritten_to_internal_url(rs_server, make_client):
    server = rs_server({"get_resource_path": "https://dam.example.com/filestore/1_pre.jpg"})
    client = make_client(server, with_resources, internal_url="http://resourcespace:8080/api/")

    path = asyncio.run(client.get_resource_path(1))

    assert path == "http://resourcespace:8080/filestore/1_pre.jpg"
    call = server.calls[0]
    assert call["ref"] == "1"
    assert call["size"] == "pre"
    assert call["generate"] == "1"
    assert "extension" not in call


def test_relative_resource_path_gets_site_root(rs_server, make_client):
    server = rs_server({"get_resource_path": "filestore/2_scr.jpg"})
    client = make_client(server, with_resources)

    options = ResourcePathOptions(size="scr", extension="jpg", watermarked=False, create_if_missing=False)
    path = asyncio.run(client.get_resource_path(2, options))

    assert path == "https://dam.example.com/filestore/2_scr.jpg"
    call = server.calls[0]
    assert call["extension"] == "jpg"
    assert call["watermarked"] == "0"
    assert call["generate"] == "0"


@pytest.mark.parametrize("reply", ["", "Resource not found", False])
def test_resource_path_errors_become_empty_string(rs_server, make_client, reply):
    server = rs_server({"get_resource_path": reply})
    client = make_client(server, with_resources)

    assert asyncio.run(client.get_resource_path(3)) == ""


def test_create_and_copy_resource(rs_server, make_client):
    server = rs_server({"create_resource": "123", "copy_resource": 124})
    client = make_client(server, with_resources)

    assert asyncio.run(client.create_resource(1)) == 123
    assert "archive" not in server.calls[0]
    assert asyncio.run(client.copy_resource(123)) == 124
    assert server.calls[1]["from"] == "123"

    server.responses["create_resource"] = False
    with pytest.raises(ResourceSpaceError) as exc:
        asyncio.run(client.create_resource(1))
    assert exc.value.code == "INVALID_REF"


def test_field_data_and_lists(rs_server, make_client):
    server = rs_server(
        {
            "get_resource_field_data": {"ref": 8, "value": "blue"},
            "get_alternative_files": [{"ref": 1}],
            "get_related_resources": None,
            "get_resource_log": {"data": [{"ref": 1}]},
            "delete_resource": True,
        }
    )
    client = make_client(server, with_resources)

    assert asyncio.run(client.get_resource_field_data(5, 8)) == [{"ref": 8, "value": "blue"}]
    assert server.calls[0]["field"] == "8"
    assert asyncio.run(client.get_alternative_files(5)) == [{"ref": 1}]
    assert asyncio.run(client.get_related_resources(5)) == []
    assert asyncio.run(client.get_resource_log(5)) == [{"ref": 1}]
    assert asyncio.run(client.delete_resource(5)) is True


def test_upload_flags(rs_server, make_client):
    server = rs_server({"upload_file": True, "add_alternative_file": 77})
    client = make_client(server, with_upload)

    assert asyncio.run(client.upload_file(5, "/srv/in/a.jpg", no_exif=True, auto_rotate=True)) is True
    call = server.calls[0]
    assert call["file_path"] == "/srv/in/a.jpg"
    assert call["no_exif"] == "1"
    assert call["autorotate"] == "1"
    assert "revert" not in call

    assert asyncio.run(client.add_alternative_file(5, "print", "Print version", "/srv/in/a.tif")) == 77
    assert server.calls[1]["file"] == "/srv/in/a.tif"
