import json
from datetime import datetime, timezone

import pytest

from cafe_orders.core.exceptions import TransportError
from cafe_orders.sync.gviz import cell_text, parse_feed_timestamp, parse_price, parse_table


def wrap(payload: dict) -> str:
    return "/*O_o*/\ngoogle.visualization.Query.setResponse(" + json.dumps(payload) + ");"


def test_parse_table_unwraps_and_pads_rows():
    text = wrap({
        "status": "ok",
        "table": {
            "cols": [{"label": "id"}, {"label": "name"}, {"label": "price"}],
            "rows": [
                {"c": [{"v": "1"}, {"v": "Latte"}, {"v": 4.5}]},
                {"c": [{"v": "2"}, None]},
            ],
        },
    })

    table = parse_table(text)

    assert table.columns == ["id", "name", "price"]
    assert table.rows[1] == ["2", None, None]
    assert table.records()[0] == {"id": "1", "name": "Latte", "price": 4.5}


def test_error_status_is_a_transport_error():
    text = wrap({"status": "error", "errors": [{"detailed_message": "Invalid sheet"}]})
    with pytest.raises(TransportError) as exc:
        parse_table(text)
    assert exc.value.detail == "Invalid sheet"


@pytest.mark.parametrize("text", ["<html>Sign in</html>", "setResponse({not json});", ""])
def test_unreadable_payloads(text):
    with pytest.raises(TransportError):
        parse_table(text)


@pytest.mark.parametrize("raw,expected", [
    ("Date(2024,0,15,9,5,0)", datetime(2024, 1, 15, 9, 5, tzinfo=timezone.utc)),
    ("Date(2024,11,31)", datetime(2024, 12, 31, tzinfo=timezone.utc)),
    ("2024-01-15T09:05:00Z", datetime(2024, 1, 15, 9, 5, tzinfo=timezone.utc)),
    ("2024-01-15T10:05:00+01:00", datetime(2024, 1, 15, 9, 5, tzinfo=timezone.utc)),
    ("1/15/2024 9:05:00", datetime(2024, 1, 15, 9, 5, tzinfo=timezone.utc)),
])
def test_timestamps(raw, expected):
    assert parse_feed_timestamp(raw) == expected


@pytest.mark.parametrize("raw", ["yesterday", "Date(2024,13,1)", None, ""])
def test_bad_timestamps(raw):
    with pytest.raises(TransportError):
        parse_feed_timestamp(raw)


def test_prices_and_cells():
    assert parse_price("$3.50") == 3.5
    assert parse_price(4) == 4.0
    assert parse_price("free") == 0.0
    assert cell_text(2.0) == "2"
    assert cell_text("  ") is None
