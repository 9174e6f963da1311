import copy

import pytest

from src.extractor import (
    build_label_map,
    extract,
    load_grid_from_csv,
    load_grid_from_csv_text,
    split_services,
)

FULL_GRID = [
    ["Business Name", "Acme Roofing", "Beta Builders"],
    ["Address", "1 Main St", "2 Side St"],
    ["Phone Number", "555-1111", "555-2222"],
    ["Website", "https://acme.example", ""],
    ["Email", "info@acme.example", "hi@beta.example"],
    ["Year Company Was Founded", "1998", "sometime in the 90s"],
    ["Main Services", "Roofing, Gutters, ", ""],
    ["Other Main Services", "Siding", "Decks"],
    ["Company Size", "12", "a few"],
    ["Service Areas (Radius)", "25 miles", "10 miles"],
    ["Description", '"Family owned"', "Builders"],
    ["Contractor type", "Roofer", "General"],
    ["Gmail", "acme@gmail.com", ""],
    ["Gmail App Password", "abcd efgh", ""],
]


def test_end_to_end_scenario_grid():
    """
    Both businesses pass the extraction gate: name plus phone or email.
    """
    grid = [
        ["Business Name", "Acme Co", "Beta LLC"],
        ["Phone", "555-1111", ""],
        ["Email", "a@acme.com", "b@beta.com"],
    ]
    records = extract(grid)

    assert [r.name for r in records] == ["Acme Co", "Beta LLC"]
    assert records[0].phone == "555-1111"
    assert records[0].email == "a@acme.com"
    assert records[1].phone == ""
    assert records[1].email == "b@beta.com"


def test_full_record_fields():
    acme, beta = extract(FULL_GRID)

    assert acme.address == "1 Main St"
    assert acme.website == "https://acme.example"
    assert acme.year_founded == 1998
    assert acme.main_services == ["Roofing", "Gutters"]
    assert acme.other_services == ["Siding"]
    assert acme.company_size == 12
    assert acme.service_area == "25 miles"
    assert acme.description == "Family owned"
    assert acme.contractor_type == "Roofer"
    assert acme.gmail == "acme@gmail.com"
    assert acme.gmail_app_password == "abcd efgh"

    # unparseable numbers stay absent, the raw text is kept
    assert beta.year_founded is None
    assert beta.year_founded_text == "sometime in the 90s"
    assert beta.company_size is None
    assert beta.company_size_text == "a few"
    assert beta.main_services == []
    assert beta.website == ""


def test_duplicate_names_keep_first_column():
    grid = [
        ["Business Name", "Acme", "Acme", "Other"],
        ["Email", "first@acme.com", "second@acme.com", "o@other.com"],
    ]
    records = extract(grid)
    assert [r.name for r in records] == ["Acme", "Other"]
    assert records[0].email == "first@acme.com"


def test_columns_without_name_or_contact_are_skipped():
    grid = [
        ["Business Name", "", "No Contact", "Reachable"],
        ["Phone", "555", "", "555-3333"],
        ["Email", "x@y.com", "", ""],
    ]
    records = extract(grid)
    assert [r.name for r in records] == ["Reachable"]


def test_irregular_rows_are_padded_with_empty_cells():
    grid = [
        ["Business Name", "Acme", "Beta"],
        ["Phone", "555-1111"],
        ["Email", "", "b@beta.com"],
        ["Notes"],
    ]
    acme, beta = extract(grid)
    assert acme.phone == "555-1111"
    assert beta.phone == ""
    assert beta.email == "b@beta.com"


def test_name_alias_priority_within_column():
    grid = [
        ["Company Name", "Legal Name Inc"],
        ["Business Name", "Trading Name"],
        ["Email", "a@b.com"],
    ]
    (record,) = extract(grid)
    assert record.name == "Trading Name"


def test_record_count_bounded_by_columns():
    records = extract(FULL_GRID)
    assert len(records) <= len(FULL_GRID[0]) - 1
    assert all(r.name for r in records)


def test_extract_is_pure():
    grid = copy.deepcopy(FULL_GRID)
    first = extract(grid)
    second = extract(grid)
    assert first == second
    assert grid == FULL_GRID


def test_empty_grid_is_structural_error():
    with pytest.raises(ValueError, match="No CSV data"):
        extract([])


def test_label_only_grid_has_no_records():
    assert extract([["Business Name"], ["Phone"]]) == []


def test_enclosing_quotes_stripped_once():
    label_map = build_label_map([["Business Name", '  "Acme"  '], ["Note", 'say "hi"']], 1)
    assert label_map == {"Business Name": "Acme", "Note": 'say "hi"'}


def test_repeated_label_keeps_filled_value():
    label_map = build_label_map([["Email", "a@a.com"], ["Email", ""]], 1)
    assert label_map["Email"] == "a@a.com"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", []),
        ("   ", []),
        ("Roofing", ["Roofing"]),
        ("Roofing , Siding,,", ["Roofing", "Siding"]),
    ],
)
def test_split_services(text, expected):
    assert split_services(text) == expected


def test_load_grid_from_csv_text_handles_ragged_rows():
    text = 'Business Name,"Acme, Inc",Beta\nPhone,555\n\nEmail,a@acme.com,b@beta.com\n'
    grid = load_grid_from_csv_text(text)
    assert grid == [
        ["Business Name", "Acme, Inc", "Beta"],
        ["Phone", "555"],
        ["Email", "a@acme.com", "b@beta.com"],
    ]


def test_load_grid_keeps_numbers_as_text():
    grid = load_grid_from_csv_text("Business Name,Acme\nYear Founded,01998\nPhone,NA\n")
    assert grid[1] == ["Year Founded", "01998"]
    assert grid[2] == ["Phone", "NA"]


def test_load_grid_from_csv_file(tmp_path):
    path = tmp_path / "businesses.csv"
    path.write_text("Business Name,Acme\nEmail,a@acme.com\n", encoding="utf-8")
    records = extract(load_grid_from_csv(str(path)))
    assert [r.name for r in records] == ["Acme"]


def test_load_grid_from_blank_text():
    assert load_grid_from_csv_text("") == []


def test_overlapping_labels_in_reverse_order():
    grid = [
        ["Business Name", "Acme"],
        ["Email Address", "a@acme.com"],
        ["Address", "1 Main St"],
        ["Other Main Services", "Siding"],
        ["Main Services", "Roofing"],
    ]
    (record,) = extract(grid)
    assert record.address == "1 Main St"
    assert record.email == "a@acme.com"
    assert record.main_services == ["Roofing"]
    assert record.other_services == ["Siding"]
