import json

import pytest

from logistics.services.postal_codes import PostalCodeDirectory, normalize_postal_code


@pytest.fixture
def table(tmp_path):
    path = tmp_path / "postal_codes.json"
    path.write_text(json.dumps([
        {"postal_code": "100-0001", "prefecture": "東京都", "city": "千代田区", "town": "千代田"},
        {"postal_code": "5300001", "prefecture": "大阪府", "city": "大阪市北区", "town": "梅田"},
    ], ensure_ascii=False), encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "raw, expected",
    [("100-0001", "1000001"), ("〒530-0001", "5300001"), ("1000001", "1000001"), ("10000", None), ("", None), (None, None)],
)
def test_normalize(raw, expected):
    assert normalize_postal_code(raw) == expected


def test_lookup_matches_both_spellings(table):
    directory = PostalCodeDirectory(table)

    assert directory.lookup("1000001")["prefecture"] == "東京都"
    assert directory.lookup("530-0001") == {
        "postal_code": "5300001",
        "prefecture": "大阪府",
        "city": "大阪市北区",
        "town": "梅田",
    }


def test_unknown_code(table):
    assert PostalCodeDirectory(table).lookup("9999999") is None


def test_malformed_code_does_not_load_table(table):
    directory = PostalCodeDirectory(table)
    assert directory.lookup("12") is None
    assert directory.loaded is False


def test_table_loaded_once(table):
    directory = PostalCodeDirectory(table)
    directory.lookup("1000001")
    table.unlink()
    assert directory.lookup("5300001")["city"] == "大阪市北区"


def test_missing_table_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        PostalCodeDirectory(tmp_path / "missing.json").lookup("1000001")
