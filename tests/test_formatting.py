import json

import pytest

from tugboat_mcp.formatting import (
    enabled_disabled,
    format_size,
    format_stat_value,
    or_unknown,
    pretty_json,
    text_block,
    text_blocks,
    yes_no,
)


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "0.00 B"),
        (512, "512.00 B"),
        (1536, "1.50 KB"),
        (1024 * 1024, "1.00 MB"),
        (5 * 1024**3, "5.00 GB"),
        (3 * 1024**4, "3.00 TB"),
        (2048 * 1024**4, "2048.00 TB"),
        ("2048", "2.00 KB"),
        (None, "Unknown"),
        (True, "Unknown"),
    ],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


def test_format_size_passes_through_non_numeric():
    assert format_size("n/a") == "n/a"


def test_format_stat_value():
    assert format_stat_value("size", 2048) == "2.00 KB"
    assert format_stat_value("build-time", 42) == "42 seconds"
    assert format_stat_value("refresh-time", 7.5) == "7.5 seconds"
    assert format_stat_value("services", 3) == "3"


def test_flag_renderers():
    assert yes_no(True) == "Yes"
    assert yes_no(None) == "No"
    assert enabled_disabled(1) == "Enabled"
    assert enabled_disabled(False) == "Disabled"
    assert or_unknown(None) == "Unknown"
    assert or_unknown(0) == "0"


def test_pretty_json_indents_two_spaces():
    text = pretty_json({"id": "p1", "tags": ["a"]})

    assert text.startswith('{\n  "id": "p1"')
    assert json.loads(text) == {"id": "p1", "tags": ["a"]}


def test_text_blocks():
    (block,) = text_block("hello")
    assert block.type == "text"
    assert block.text == "hello"
    assert [item.text for item in text_blocks("a", "b")] == ["a", "b"]
