import pytest

from frontdesk.core.errors import ValidationFailed
from frontdesk.modules.booking.identity import (
    format_document, greeting, is_valid_cpf, mask_document, validate_document,
)


class TestCpf:
    @pytest.mark.parametrize("value", ["529.982.247-25", "52998224725", "111.444.777-35"])
    def test_valid(self, value):
        assert is_valid_cpf(value)

    @pytest.mark.parametrize("value", ["529.982.247-26", "11111111111", "5299822472", ""])
    def test_invalid(self, value):
        assert not is_valid_cpf(value)


class TestValidateDocument:
    def test_punctuation_is_stripped(self):
        assert validate_document("529.982.247-25") == "52998224725"

    def test_sus_card_accepted_by_length(self):
        assert validate_document("898 0012 3456 7890") == "898001234567890"

    def test_seven_digits_get_their_own_message(self):
        with pytest.raises(ValidationFailed) as exc:
            validate_document("5299822")
        assert "7 digits" in exc.value.message

    @pytest.mark.parametrize("value", ["", "abc", "123456789", "52998224726"])
    def test_rejected(self, value):
        with pytest.raises(ValidationFailed) as exc:
            validate_document(value)
        assert exc.value.field == "document"


@pytest.mark.parametrize("raw,shown", [
    ("529", "529"),
    ("5299822", "529.982.2"),
    ("52998224725", "529.982.247-25"),
    ("898001234567890", "898 0012 3456 7890"),
])
def test_format_document_as_typed(raw, shown):
    assert format_document(raw) == shown


def test_mask_keeps_last_three_digits():
    assert mask_document("529.982.247-25") == "********725"


@pytest.mark.parametrize("hour,text", [(0, "Good morning"), (11, "Good morning"), (12, "Good afternoon"), (18, "Good evening")])
def test_greeting_by_hour(hour, text):
    assert greeting(hour) == text
