import pytest
from io import BytesIO
from playwright_mocking.content_loader import parse_response_data, parse_content_type, encode_body, _strip_json_prefix


class TestJsonPrefixRemoval:
    """Tests for anti-hijacking prefix removal"""

    @pytest.mark.parametrize("raw", [
        ")]}'\n{\"data\": \"test\"}",
        ")]}{\"data\": \"test\"}",
        "while(1);{\"data\": \"test\"}",
        "for(;;);{\"data\": \"test\"}",
        "/*comment*/{\"data\": \"test\"}",
        ";;;;;;;{\"data\": \"test\"}",
        "  \t\n  prefix{\"data\": \"test\"}",
    ])
    def test_known_and_unknown_prefixes(self, raw):
        assert parse_response_data(raw, "application/json") == {"data": "test"}

    def test_arrays(self):
        assert parse_response_data(")]}'\n[1,2,3]", "application/json") == [1, 2, 3]
        assert parse_response_data('prefix[{"a":1},{"b":2}]', "application/json") == [{"a": 1}, {"b": 2}]

    def test_brackets_inside_strings(self):
        raw = 'x{"text": "a } ] { [ b", "n": 1}'
        assert parse_response_data(raw, "application/json") == {"text": "a } ] { [ b", "n": 1}

    def test_invalid_candidate_is_skipped(self):
        # первая скобка не даёт валидного JSON, вторая - даёт
        assert _strip_json_prefix('{bad} {"ok": true}') == '{"ok": true}'

    def test_no_json_returns_text(self):
        assert parse_response_data("not json at all", "application/json") == "not json at all"

    def test_bytes_input(self):
        assert parse_response_data(b'{"fruit": "Strawberry"}', "application/json; charset=utf-8") == {"fruit": "Strawberry"}


class TestContentType:
    def test_parameters(self):
        result = parse_content_type('Text/HTML; Charset="UTF-8"; boundary=abc')
        assert result == {"content_type": "text/html", "charset": "utf-8", "boundary": "abc"}

    def test_empty(self):
        assert parse_content_type("") == {"content_type": "", "charset": "utf-8"}
        assert parse_content_type(None)["charset"] == "utf-8"


class TestResponseData:
    def test_image_becomes_bytesio(self):
        result = parse_response_data(b"\x89PNG", "image/png")
        assert isinstance(result, BytesIO)
        assert result.name == "file.png"
        assert result.getvalue() == b"\x89PNG"

    def test_text(self):
        assert parse_response_data(b"<html></html>", "text/html; charset=utf-8") == "<html></html>"

    def test_undecodable_bytes(self):
        result = parse_response_data(b"\xff\xfe\xfa", "text/plain; charset=ascii")
        assert isinstance(result, BytesIO)


class TestEncodeBody:
    def test_json(self):
        assert encode_body([{"id": 21}]) == (b'[{"id": 21}]', "application/json")

    def test_text_and_bytes(self):
        assert encode_body("hi") == (b"hi", "text/plain")
        assert encode_body(b"\x00") == (b"\x00", "application/octet-stream")
        assert encode_body(None) == (b"", None)
