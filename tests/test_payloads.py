import pytest

from superlaser.effects import build_transition_table
from superlaser.payloads import all_payloads, get_payload
from superlaser.settings import SequenceSettings


def test_every_referenced_payload_exists() -> None:
    referenced = {
        transition.payload_id
        for transition in build_transition_table(SequenceSettings())
        if transition.payload_id is not None
    }

    assert referenced == {"engines", "powering", "laser", "firing", "impact", "energy"}
    for payload_id in referenced:
        payload = get_payload(payload_id)
        assert payload.payload_id == payload_id
        assert payload.title
        assert payload.paragraphs


def test_payload_text_joins_title_and_paragraphs() -> None:
    payload = get_payload("engines")
    assert payload.text.startswith(payload.title)
    assert payload.paragraphs[-1] in payload.text


def test_unknown_payload_raises() -> None:
    with pytest.raises(KeyError):
        get_payload("hyperdrive")
    assert len(list(all_payloads())) == 6
