import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit

MASK = "***MASKED***"


class TestSensitiveDataMasking:
    def test_email_masked(self):
        event_dict = {"event": "test", "email": "laura.gomez@correo.com.co"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "laura.gomez" not in result["email"]
        assert MASK in result["email"]

    @pytest.mark.parametrize(
        "phone", ["3001234567", "+57 300 123 4567", "+573001234567", "57-300-123-4567"]
    )
    def test_mobile_number_masked(self, phone):
        event_dict = {"event": "test", "contact_phone": f"call {phone} at noon"}
        result = mask_sensitive_data(None, None, event_dict)
        assert phone not in result["contact_phone"]
        assert MASK in result["contact_phone"]

    def test_password_masked(self):
        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert MASK in result["data"]

    def test_token_masked(self):
        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert MASK in result["header"]

    def test_authorization_header_masked(self):
        event_dict = {"event": "test", "header": "Authorization: eyJhbGciOi.payload"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "eyJhbGciOi" not in result["header"]

    def test_non_sensitive_data_unchanged(self):
        event_dict = {
            "event": "order.created",
            "order_number": "ORD-20261019-3A9F0C",
            "total_amount": "31000.00",
            "item_count": 2,
        }
        result = mask_sensitive_data(None, None, dict(event_dict))
        assert result == event_dict
