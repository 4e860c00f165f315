from __future__ import annotations

import json

import pytest

from mobiledoc_md.mobiledoc import model


def _doc(**overrides):
    data = {
        "version": "0.3.1",
        "markups": [["a", ["href", "https://example.com", "rel", "nofollow"]]],
        "atoms": [["mention", "@bob", {"id": 7}]],
        "cards": [["image", {"src": "a.png"}]],
        "sections": [
            [1, "P", [[0, [0], 1, "link"], [1, [], 0, 0]]],
            [2, "https://example.com/b.png"],
            [3, "ul", [[[0, [], 0, "one"]], [[0, [], 0, "two"]]]],
            [10, 0],
        ],
    }
    data.update(overrides)
    return data


def test_parse_v03_document_from_string():
    doc = model.parse_mobiledoc(json.dumps(_doc()))

    assert doc.version == "0.3.1"
    assert doc.markups == (
        model.Markup(
            tag="a",
            attributes={"href": "https://example.com", "rel": "nofollow"},
        ),
    )
    assert doc.atoms == (model.Atom("mention", "@bob", {"id": 7}),)
    assert doc.cards == (model.Card("image", {"src": "a.png"}),)

    paragraph, image, bullets, card = doc.sections
    assert paragraph == model.MarkupSection(
        tag="p",
        markers=(
            model.Marker(model.MarkerKind.TEXT, (0,), 1, "link"),
            model.Marker(model.MarkerKind.ATOM, (), 0, 0),
        ),
    )
    assert image == model.ImageSection(src="https://example.com/b.png")
    assert bullets.tag == "ul"
    assert [item[0].value for item in bullets.items] == ["one", "two"]
    assert card == model.CardSection(card_index=0)


def test_parse_accepts_decoded_mapping():
    doc = model.parse_mobiledoc(_doc())

    assert len(doc.sections) == 4


def test_parse_tolerates_missing_tables():
    doc = model.parse_mobiledoc({"version": "0.3.0", "sections": []})

    assert doc.markups == ()
    assert doc.atoms == ()
    assert doc.cards == ()
    assert doc.sections == ()


def test_parse_v02_document_normalizes_cards():
    data = {
        "version": "0.2.0",
        "sections": [
            [["b"], ["A", ["href", "https://example.com"]]],
            [
                [1, "h2", [[[], 0, "Title"]]],
                [1, "p", [[[], 0, "Hi "], [[0], 1, "there"]]],
                [10, "image", {"src": "a.png"}],
                [3, "ol", [[[[], 0, "first"]]]],
            ],
        ],
    }

    doc = model.parse_mobiledoc(data)

    assert doc.version == "0.2.0"
    assert [markup.tag for markup in doc.markups] == ["b", "a"]
    assert doc.atoms == ()
    assert doc.cards == (model.Card("image", {"src": "a.png"}),)
    assert doc.sections[2] == model.CardSection(card_index=0)
    assert doc.sections[1].markers[1] == model.Marker(
        model.MarkerKind.TEXT, (0,), 1, "there"
    )
    assert doc.sections[3].items[0][0].value == "first"


def test_parse_rejects_invalid_json():
    with pytest.raises(model.MobiledocFormatError, match="not valid JSON"):
        model.parse_mobiledoc("{oops")


def test_parse_rejects_non_object():
    with pytest.raises(model.MobiledocFormatError, match="found list"):
        model.parse_mobiledoc("[]")


def test_parse_requires_version():
    with pytest.raises(model.MobiledocFormatError, match="version"):
        model.parse_mobiledoc({"sections": []})


def test_parse_rejects_unknown_version():
    with pytest.raises(model.UnsupportedVersionError, match="0.9.0"):
        model.parse_mobiledoc({"version": "0.9.0", "sections": []})


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"sections": [[10, 3]]}, "card index 3 is out of range"),
        ({"sections": [[7, "p", []]]}, "unknown section type 7"),
        ({"sections": [[]]}, "section is empty"),
        ({"sections": [[1, "p"]]}, "section is truncated"),
        ({"sections": [[1, 5, []]]}, "tag name must be a string"),
        ({"sections": [[2, None]]}, "image src must be a string"),
        ({"sections": [[1, "p", [[0, [4], 1, "x"]]]]}, "markup index 4"),
        ({"sections": [[1, "p", [[1, [], 0, 9]]]]}, "atom index 9"),
        ({"sections": [[1, "p", [[5, [], 0, "x"]]]]}, "unknown marker type 5"),
        ({"sections": [[1, "p", [[0, [], 0, 3]]]]}, "text value must be a string"),
        ({"sections": [[1, "p", [[0, [], -1, "x"]]]]}, "non-negative integer"),
        ({"sections": [[1, "p", [[0, [], 0]]]]}, "expected [type, opens"),
        ({"sections": "nope"}, "sections: expected an array, found str"),
        ({"markups": [["a", ["href"]]]}, "key/value pairs"),
        ({"atoms": [["mention", "@bob"]]}, "expected [name, text, payload]"),
        ({"cards": [[1, {}]]}, "card must start with a name"),
    ],
)
def test_parse_reports_malformed_structure(overrides, message):
    with pytest.raises(model.MobiledocFormatError) as excinfo:
        model.parse_mobiledoc(_doc(**overrides))

    assert message in str(excinfo.value)


def test_parse_v02_requires_section_pair():
    with pytest.raises(model.MobiledocFormatError, match="markerTypes"):
        model.parse_mobiledoc({"version": "0.2.0", "sections": []})
