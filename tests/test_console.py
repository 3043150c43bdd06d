"""Tests for console.py."""

from infactory_client import console


class TestMasking:
    """Tests for credential masking."""

    def test_mask_auth_header(self):
        assert console.mask_auth_header("Bearer nf-1234567890abcdef") == "Bearer nf-12345***"

    def test_short_value_fully_masked(self):
        assert console.mask_auth_header("short") == "*****"

    def test_empty_value(self):
        assert console.mask_auth_header(None) == "<none>"
        assert console.mask_auth_header("") == "<none>"

    def test_mask_headers(self):
        masked = console.mask_headers(
            {"Authorization": "Bearer nf-1234567890abcdef", "Cookie": "session=abcdefghijklmnop", "accept": "*/*"}
        )
        assert "1234567890abcdef" not in masked["Authorization"]
        assert masked["Cookie"].endswith("***")
        assert masked["accept"] == "*/*"

    def test_mask_url(self):
        url = "https://api.example.com/v1/projects?nf_api_key=secret&team_id=t1"
        assert console.mask_url(url, "nf_api_key") == (
            "https://api.example.com/v1/projects?nf_api_key=****&team_id=t1"
        )


class TestFormatBody:
    """Tests for format_body."""

    def test_dict(self):
        assert console.format_body({"a": 1}) == '{\n  "a": 1\n}'

    def test_binary(self):
        assert console.format_body(b"\xff\xfe") == "<binary data: 2 bytes>"

    def test_none(self):
        assert console.format_body(None) == ""


class TestPanels:
    """Tests for rich panel output."""

    def test_print_request_masks_credentials(self, capsys):
        console.print_request(
            "GET",
            "https://api.example.com/v1/projects",
            {"Authorization": "Bearer nf-1234567890abcdef"},
        )
        captured = capsys.readouterr()
        assert "1234567890abcdef" not in captured.err
        assert "/v1/projects" in captured.err

    def test_print_response(self, capsys):
        console.print_response(404, "Not Found", "https://api.example.com/x", {"a": "b"}, {"message": "gone"})
        captured = capsys.readouterr()
        assert "404" in captured.err
