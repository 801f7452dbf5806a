# tests/application/services/test_redactor.py
from application.services.redactor import mask_dict, mask_value


class TestMaskValue:
    def test_mask_authorization(self):
        assert mask_value("authorization", "Bearer token123") == "********"

    def test_mask_api_key_headers(self):
        assert mask_value("X-API-Key", "k1") == "********"
        assert mask_value("apikey", "k2") == "********"

    def test_mask_cookies(self):
        assert mask_value("cookie", "session=abc123") == "********"
        assert mask_value("Set-Cookie", "session=xyz789") == "********"

    def test_no_mask_regular_key(self):
        assert mask_value("Content-Type", "application/json") == "application/json"

    def test_mask_none_value(self):
        assert mask_value("password", None) is None


class TestMaskDict:
    def test_mask_request_headers(self):
        headers = {
            "Authorization": "Bearer abc",
            "Accept": "application/json",
            "X-API-Key": "secret",
        }
        result = mask_dict(headers)
        assert result == {
            "Authorization": "********",
            "Accept": "application/json",
            "X-API-Key": "********",
        }

    def test_mask_dict_empty_dict(self):
        assert mask_dict({}) == {}

    def test_input_is_not_modified(self):
        headers = {"Authorization": "Bearer abc"}
        mask_dict(headers)
        assert headers == {"Authorization": "Bearer abc"}
