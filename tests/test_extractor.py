import os
import sys

import pytest

# Ensure the repository's src/ is importable
sys.path.insert(0, os.path.abspath("src"))

from auction_appraisal.domain import (
    RawAppraisal,
    StructuredAppraisal,
    classify_label,
    display_rows,
    extract,
    segment_blocks,
    summarize,
)


FULL_REPLY = """**Item name:** Art Deco bronze figurine
**Condition:** Good, light patina wear on the base.
**Materials:** Bronze, marble plinth
**Dimensions:** N/A
**Maker/Origin:** France, signed "Chiparus" on base
**Details:**
Dancer in mid-step, cold-painted details,
marble plinth with brass foot.
**Market notes:** Strong demand for signed examples.
**Price:** $1,200–$1,800
"""


def test_end_to_end_scenario():
    parsed = extract("**Item name:** Blue vase\n**Condition:** Minor chip\n**Price:** $40-$60")
    assert isinstance(parsed, StructuredAppraisal)
    assert parsed.fields == {"itemName": "Blue vase", "condition": "Minor chip", "price": "$40-$60"}


def test_full_reply_multiline_content_is_kept_together():
    parsed = extract(FULL_REPLY)
    assert isinstance(parsed, StructuredAppraisal)
    assert parsed.get("itemName") == "Art Deco bronze figurine"
    assert parsed.get("maker") == 'France, signed "Chiparus" on base'
    assert parsed.get("details") == (
        "Dancer in mid-step, cold-painted details,\nmarble plinth with brass foot."
    )
    assert parsed.get("price") == "$1,200–$1,800"


def test_na_value_is_reported_not_filtered():
    parsed = extract("**Dimensions:** N/A\n**Condition:** Fine")
    assert parsed.get("dimensions") == "N/A"
    # Filtering happens at render time.
    assert ("Dimensions", "N/A") not in display_rows(parsed)
    assert ("Condition", "Fine") in display_rows(parsed)


@pytest.mark.parametrize("blank", ["", "   ", "\n\t\n", None])
def test_blank_input_signals_no_content(blank):
    assert extract(blank) is None
    assert summarize(extract(blank)) == {"kind": "empty", "message": "No response."}


def test_plain_chat_reply_degrades_to_raw():
    parsed = extract("  Sure! A vase like this usually sells for $40.\n")
    assert parsed == RawAppraisal(text="Sure! A vase like this usually sells for $40.")


def test_only_unrecognized_labels_gives_raw_with_full_text():
    text = "**Lot number:** 42\n**Auction house:** Somewhere"
    parsed = extract(text)
    assert isinstance(parsed, RawAppraisal)
    assert parsed.text == text


def test_unrecognized_labels_are_dropped_alongside_known_ones():
    parsed = extract("**Lot number:** 42\n**Condition:** Worn")
    assert parsed.fields == {"condition": "Worn"}


def test_labels_with_empty_content_are_skipped():
    parsed = extract("**Item name:**   \n**Condition:** Worn")
    assert parsed.fields == {"condition": "Worn"}
    assert isinstance(extract("**Item name:**\n**Condition:**"), RawAppraisal)


def test_market_value_name_label_is_not_item_name():
    assert classify_label("market value / name") == "marketNotes"
    parsed = extract("**Market Value / Name:** steady")
    assert parsed.fields == {"marketNotes": "steady"}


@pytest.mark.parametrize(
    "label, key",
    [
        ("item name:", "itemName"),
        ("name", "itemName"),
        ("overall condition", "condition"),
        ("materials:", "materials"),
        ("dimensions", "dimensions"),
        ("period", "age"),
        ("maker/origin:", "maker"),
        ("origin", "maker"),
        ("description", "details"),
        ("flaws", "damage"),
        ("damage/flaws", "age"),
        ("market notes", "marketNotes"),
        ("estimate", "price"),
        ("value", "price"),
        ("price:", "price"),
        ("provenance", None),
    ],
)
def test_classify_label(label, key):
    assert classify_label(label) == key


def test_separator_and_newline_after_label():
    blocks = segment_blocks("**Condition** -\nChipped rim\n**PRICE**: $5")
    assert blocks == [("condition", "Chipped rim"), ("price", "$5")]


def test_matching_is_case_insensitive_for_labels():
    parsed = extract("**CONDITION:** Mint")
    assert parsed.fields == {"condition": "Mint"}


def test_later_duplicate_label_overwrites():
    parsed = extract("**Price:** $10\n**Estimate:** $20")
    assert parsed.fields == {"price": "$20"}


def test_damage_label_lands_in_age_and_overwrites_it():
    parsed = extract("**Age/Period:** 1920s\n**Damage/Flaws:** Hairline crack")
    assert parsed.fields == {"age": "Hairline crack"}
    assert "damage" not in parsed.fields


def test_structured_never_empty():
    with pytest.raises(ValueError):
        StructuredAppraisal(fields={})


def test_summarize_structured_card():
    card = summarize(extract(FULL_REPLY))
    assert card["kind"] == "structured"
    assert card["title"] == "Art Deco bronze figurine"
    assert card["price"] == "$1,200–$1,800"
    labels = [row["label"] for row in card["rows"]]
    assert labels == ["Condition", "Materials", "Maker / Origin", "Details", "Market notes"]
