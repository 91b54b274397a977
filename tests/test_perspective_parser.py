from research_engine.perspective_parser import parse_perspectives


def test_numbered_lines_are_extracted_in_order() -> None:
    assert parse_perspectives("1. A: x\n2. B: y") == ["A: x", "B: y"]


def test_parenthesis_numbering_and_noise_lines() -> None:
    raw = "Intro line\n\n  3) Third: c  \nnot numbered\n10. Tenth: j\n"
    assert parse_perspectives(raw) == ["Third: c", "Tenth: j"]


def test_paragraph_fallback_when_no_numbered_lines() -> None:
    assert parse_perspectives("Paragraph one.\n\nParagraph two.") == ["Paragraph one.", "Paragraph two."]


def test_paragraph_fallback_collapses_long_breaks() -> None:
    raw = "  First block\nstill first  \n\n\n\n   \n\nSecond block"
    assert parse_perspectives(raw) == ["First block\nstill first", "Second block"]


def test_empty_and_whitespace_input() -> None:
    assert parse_perspectives("") == []
    assert parse_perspectives("   \n\n  ") == []


def test_non_string_input() -> None:
    assert parse_perspectives(None) == []
    assert parse_perspectives(42) == []


def test_marker_without_following_space_still_counts() -> None:
    assert parse_perspectives("1.Alpha: a\n2.Beta: b") == ["Alpha: a", "Beta: b"]
    assert parse_perspectives("1)Alpha: a\n2)Beta: b") == ["Alpha: a", "Beta: b"]
