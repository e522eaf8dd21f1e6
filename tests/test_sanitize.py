import pytest

from querymetrics.core.sanitize import clean_name, sanitize_label_value

NAME_INPUTS = [
    "Disk (C:) % Used",
    "Bytes/sec",
    "CPU * 100",
    "Already_Clean",
    "100%",
    "(nested (parens))",
    "",
]


def test_clean_name_example():
    assert clean_name("Disk (C:) % Used") == "disk_c_percent_used"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Read Bytes/sec", "read_bytessec"),
        ("Hit Ratio %", "hit_ratio_percent"),
        ("Total*Count", "totalcount"),
        ("UPPER", "upper"),
        ("a  b", "a__b"),
        ("", ""),
    ],
)
def test_clean_name_rules(raw, expected):
    assert clean_name(raw) == expected


@pytest.mark.parametrize("raw", NAME_INPUTS)
def test_clean_name_output_properties(raw):
    cleaned = clean_name(raw)

    for forbidden in "()/* ":
        assert forbidden not in cleaned
    assert "%" not in cleaned
    assert cleaned == cleaned.lower()
    assert cleaned.count("percent") == raw.lower().count("percent") + raw.count("%")


@pytest.mark.parametrize("raw", NAME_INPUTS)
def test_clean_name_is_idempotent(raw):
    once = clean_name(raw)
    assert clean_name(once) == once


def test_clean_name_does_not_truncate():
    raw = "x" * 500
    assert clean_name(raw) == raw


def test_sanitize_label_value_only_touches_spaces():
    assert sanitize_label_value("Primary Key (id)/% ") == "Primary_Key_(id)/%_"
    assert sanitize_label_value("no-spaces") == "no-spaces"
