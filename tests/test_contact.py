import pytest

from contact import FAILURE_NOTICE, ContactForm, FormState, send_contact_message, validate_contact
from conftest import FakeSender
from errors import DeliveryError, ValidationError
from schemas import ContactMessage

GOOD = {"name": "Ada", "email": "ada@example.com", "subject": "Commission", "message": "I love your work!"}


def fill(form, values):
    for key, value in values.items():
        form.set(key, value)


class TestValidation:
    def test_valid(self):
        assert validate_contact(GOOD) == {}

    def test_all_violations_reported_together(self):
        errors = validate_contact({"name": "", "email": "ada.example.com", "subject": "abc", "message": "short"})
        assert set(errors) == {"name", "email", "subject", "message"}

    @pytest.mark.parametrize(
        "field,value",
        [
            ("name", ""),
            ("name", "A"),
            ("email", ""),
            ("email", "ada.example.com"),
            ("email", "ada@example"),
            ("subject", ""),
            ("subject", "abc"),
            ("message", ""),
            ("message", "hello"),
        ],
    )
    def test_single_field(self, field, value):
        errors = validate_contact({**GOOD, field: value})
        assert list(errors) == [field]


class TestContactForm:
    def test_invalid_input_never_sends(self):
        sent = []
        form = ContactForm(sent.append)
        fill(form, {"name": "", "email": "nope", "subject": "abc", "message": "hello"})
        assert form.submit() is FormState.editing
        assert set(form.errors) == {"name", "email", "subject", "message"}
        assert sent == []

    def test_success_clears_fields(self):
        sent = []
        form = ContactForm(sent.append)
        fill(form, GOOD)
        assert form.submit() is FormState.success
        assert sent == [ContactMessage(**GOOD)]
        assert all(value == "" for value in form.values.values())
        form.dismiss()
        assert form.state is FormState.editing

    def test_failure_keeps_values(self):
        def send(msg):
            raise DeliveryError()

        form = ContactForm(send)
        fill(form, GOOD)
        assert form.submit() is FormState.failed
        assert form.notice == FAILURE_NOTICE
        assert form.values == GOOD
        form.dismiss()
        assert form.state is FormState.editing
        assert form.notice is None

    def test_editing_clears_field_error(self):
        form = ContactForm(lambda msg: None)
        form.submit()
        assert "name" in form.errors
        form.set("name", "Ada")
        assert "name" not in form.errors

    def test_unknown_field(self):
        with pytest.raises(KeyError):
            ContactForm(lambda msg: None).set("phone", "555")


class TestSendContactMessage:
    def test_renders_and_sends(self):
        sender = FakeSender()
        send_contact_message(sender, "owner@site.dev", ContactMessage(**GOOD))
        mail = sender.sent[0]
        assert mail["to"] == "owner@site.dev"
        assert mail["subject"] == "Commission"
        assert "Ada" in mail["html"]

    def test_requires_name_email_message(self):
        sender = FakeSender()
        with pytest.raises(ValidationError):
            send_contact_message(sender, "owner@site.dev", ContactMessage(name="Ada", email="", message="hi"))
        assert sender.sent == []

    @pytest.mark.parametrize(
        "field,value",
        [
            ("name", "Ada\r\nX-Spam: yes"),
            ("email", "ada@example.com\nBcc: all@example.com"),
            ("subject", "Hello\nBcc: all@example.com"),
        ],
    )
    def test_rejects_multiline_header_values(self, field, value):
        sender = FakeSender()
        with pytest.raises(ValidationError) as exc:
            send_contact_message(sender, "owner@site.dev", ContactMessage(**{**GOOD, field: value}))
        assert exc.value.fields == {field: "Must be a single line"}
        assert sender.sent == []

    def test_rejects_malformed_email(self):
        sender = FakeSender()
        with pytest.raises(ValidationError) as exc:
            send_contact_message(sender, "owner@site.dev", ContactMessage(**{**GOOD, "email": "ada.example.com"}))
        assert "email" in exc.value.fields
        assert sender.sent == []

    def test_delivery_error_propagates(self):
        with pytest.raises(DeliveryError):
            send_contact_message(FakeSender(error=DeliveryError()), "owner@site.dev", ContactMessage(**GOOD))
