from files_api.database.schemas import StoredObject
from files_api.responder import build_file_response, content_disposition, file_headers
from files_api.settings import Disposition


def make_object(name: str = "a.txt", data: bytes = b"hello", mimetype: str = "text/plain") -> StoredObject:
    return StoredObject(id="65f1c0a2e4b0a1b2c3d4e5f6", name=name, data=data, size=len(data), mimetype=mimetype)


def test_file_headers():
    assert file_headers(make_object()) == {
        "Content-Type": "text/plain",
        "Content-Length": "5",
        "Content-Disposition": 'inline; filename="a.txt"',
    }


def test_file_headers_attachment():
    headers = file_headers(make_object(name="report.pdf"), Disposition.ATTACHMENT)

    assert headers["Content-Disposition"] == 'attachment; filename="report.pdf"'


def test_content_disposition_non_ascii_name():
    value = content_disposition("résumé.pdf")

    assert value == "inline; filename=\"r?sum?.pdf\"; filename*=UTF-8''r%C3%A9sum%C3%A9.pdf"


def test_content_disposition_escapes_quotes_and_control_chars():
    value = content_disposition('bad"\r\nname.txt')

    assert "\r" not in value and "\n" not in value
    assert value.startswith('inline; filename="bad\\"name.txt"')


def test_build_file_response_sends_bytes_untouched():
    data = b"\x00\xff" * 10
    response = build_file_response(make_object(name="blob.bin", data=data, mimetype="application/octet-stream"))

    assert response.status_code == 200
    assert response.body == data
    assert response.headers["content-type"] == "application/octet-stream"
    assert response.headers["content-length"] == "20"


def test_build_file_response_does_not_append_charset():
    response = build_file_response(make_object())

    assert response.headers["content-type"] == "text/plain"
