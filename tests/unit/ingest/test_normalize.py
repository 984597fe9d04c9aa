"""Tests for the text normalizer."""

from __future__ import annotations

from sentinel.ingest.normalize import normalize


def test_crlf_and_cr_become_lf() -> None:
    assert normalize("a\r\nb\rc") == "a\nb\nc"


def test_control_characters_are_removed() -> None:
    assert normalize("pa\x00ss\x07word\ufeff") == "password"


def test_tabs_and_space_runs_collapse() -> None:
    assert normalize("one\t\t two   three") == "one two three"


def test_whitespace_around_newlines_dropped() -> None:
    assert normalize("line one   \n   line two") == "line one\nline two"


def test_three_or_more_newlines_collapse_to_two() -> None:
    assert normalize("para one\n\n\n\n\npara two") == "para one\n\npara two"


def test_paragraph_break_kept() -> None:
    assert normalize("para one\n\npara two") == "para one\n\npara two"


def test_trims_result() -> None:
    assert normalize("  \n\n hello \n\n ") == "hello"


def test_empty_and_whitespace_only_input() -> None:
    assert normalize("") == ""
    assert normalize(" \t\r\n\x00 ") == ""


def test_idempotent() -> None:
    raw = "Heading\r\n\r\n\r\n  Body\ttext  \x0b here.\n\n\n\nEnd"
    once = normalize(raw)
    assert normalize(once) == once
