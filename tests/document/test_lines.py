"""Tests for line classification."""

import pytest

from wg_wrapper.document.lines import (
    BlankLine,
    CommentLine,
    KeyValueLine,
    LineKind,
    SectionHeader,
    UnrecognizedLine,
    classify_line,
)


class TestClassifyLine:
    """Test classification of single lines."""

    @pytest.mark.parametrize("content", ["", "   ", "\t"])
    def test_blank_lines(self, content):
        line = classify_line(content, "\n")
        assert isinstance(line, BlankLine)
        assert line.render() == content + "\n"

    @pytest.mark.parametrize("content", ["# comment", "  ; other", "#Address = 1.2.3.4"])
    def test_comment_lines(self, content):
        line = classify_line(content)
        assert isinstance(line, CommentLine)
        assert line.kind == LineKind.COMMENT

    def test_section_header(self):
        line = classify_line("  [ Peer ]  ")
        assert isinstance(line, SectionHeader)
        assert line.name == "Peer"
        assert line.is_named("peer")
        assert line.render() == "  [ Peer ]  "

    @pytest.mark.parametrize(
        "content", ["[Interface] # main", "[Peer];office", "  [Peer]  #"]
    )
    def test_section_header_with_trailing_comment(self, content):
        line = classify_line(content, "\n")
        assert isinstance(line, SectionHeader)
        assert line.name in ("Interface", "Peer")
        assert line.render() == content + "\n"

    def test_escaped_comment_char_not_stripped_before_header(self):
        assert isinstance(classify_line(r"[Peer\#]x"), UnrecognizedLine)

    def test_key_value_split(self):
        line = classify_line("DNS = 1.1.1.1")
        assert isinstance(line, KeyValueLine)
        assert line.key == "DNS"
        assert line.value == "1.1.1.1"
        assert line.raw_prefix == "DNS = "
        assert line.trailing == ""

    def test_key_value_keeps_spacing_and_inline_comment(self):
        line = classify_line("  dns=1.1.1.1   # cloudflare")
        assert isinstance(line, KeyValueLine)
        assert line.key == "dns"
        assert line.value == "1.1.1.1"
        assert line.raw_prefix == "  dns="
        assert line.trailing == "   # cloudflare"
        assert line.render() == "  dns=1.1.1.1   # cloudflare"

    def test_semicolon_inline_comment(self):
        line = classify_line("MTU = 1420 ; tuned")
        assert line.value == "1420"
        assert line.trailing == " ; tuned"

    def test_escaped_comment_char_stays_in_value(self):
        line = classify_line(r"Endpoint = host\#1:51820")
        assert line.value == r"host\#1:51820"
        assert line.trailing == ""

    def test_value_only_split_on_first_equals(self):
        line = classify_line("PublicKey = abc+def/ghi=")
        assert line.value == "abc+def/ghi="

    def test_empty_value(self):
        line = classify_line("DNS =   ")
        assert isinstance(line, KeyValueLine)
        assert line.value == ""
        assert line.render() == "DNS =   "

    def test_matches_is_case_insensitive(self):
        line = classify_line("allowedips = 10.0.0.0/8")
        assert line.matches("AllowedIPs")

    @pytest.mark.parametrize("content", ["garbage", "= no key", "[unterminated"])
    def test_unrecognized_lines(self, content):
        line = classify_line(content)
        assert isinstance(line, UnrecognizedLine)
        assert line.render() == content

    def test_with_value_substitutes_only_value(self):
        line = classify_line("DNS  =  1.1.1.1  # primary", "\r\n")
        updated = line.with_value("9.9.9.9")
        assert updated.render() == "DNS  =  9.9.9.9  # primary\r\n"
        assert line.value == "1.1.1.1"
