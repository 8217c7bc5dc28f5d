"""Tests for the output log, the auto-scroll policy and link rendering."""

import pytest

from termfolio.lib.output import (AutoScroll, LineKind, OutputLog, find_links, info, output,
                                  render_line, syntax_for)


# =============================================================================
# OutputLog
# =============================================================================


class TestOutputLog:
    """Tests for the append-only line log."""

    def test_extend_keeps_order_and_returns_added_lines(self):
        log = OutputLog()
        log.append(info("banner"))
        added = log.extend([output("a"), output("b")])
        assert [line.content for line in added] == ["a", "b"]
        assert [line.content for line in log] == ["banner", "a", "b"]

    def test_clear_does_not_touch_earlier_snapshots(self):
        log = OutputLog()
        log.extend([output("a"), output("b")])
        before = list(log)
        log.clear()
        assert len(log) == 0
        assert [line.content for line in before] == ["a", "b"]

    def test_lines_are_immutable(self):
        line = output("x")
        with pytest.raises(AttributeError):
            line.content = "y"


# =============================================================================
# AutoScroll
# =============================================================================


class TestAutoScroll:
    """Tests for following new output and respecting manual scrolling."""

    def test_every_append_pins_to_the_bottom(self):
        scroll = AutoScroll()
        client = 20
        for height in range(21, 60, 7):
            assert scroll.after_append(height, client) == height - client

    def test_short_content_stays_at_the_top(self):
        assert AutoScroll().after_append(5, 20) == 0

    def test_scrolling_away_stops_following(self):
        scroll = AutoScroll(threshold=1)
        scroll.on_user_scroll(scroll_top=10, scroll_height=100, client_height=20)
        assert not scroll.enabled
        assert scroll.after_append(110, 20) is None
        assert scroll.after_append(120, 20) is None

    def test_returning_within_the_threshold_resumes(self):
        scroll = AutoScroll(threshold=1)
        scroll.on_user_scroll(10, 100, 20)
        scroll.on_user_scroll(79, 100, 20)
        assert scroll.enabled
        assert scroll.after_append(130, 20) == 110

    def test_just_outside_the_threshold(self):
        scroll = AutoScroll(threshold=1)
        assert not scroll.on_user_scroll(78, 100, 20)

    def test_force_re_enables(self):
        scroll = AutoScroll()
        scroll.on_user_scroll(0, 100, 20)
        scroll.force()
        assert scroll.after_append(100, 20) == 80


# =============================================================================
# Links
# =============================================================================


class TestLinks:
    """Tests for detecting URLs inside output lines."""

    def test_plain_line(self):
        segments = find_links("no links here")
        assert [s.text for s in segments] == ["no links here"]
        assert not segments[0].is_link

    def test_link_text_is_the_literal_url(self):
        segments = find_links("- GitHub: https://github.com/ada-example/cronwheel")
        link = segments[-1]
        assert link.is_link
        assert link.text == link.url == "https://github.com/ada-example/cronwheel"
        assert link.target == "_blank"
        assert link.rel == "noopener noreferrer"

    def test_several_urls_and_spacing_are_preserved(self):
        content = "see  http://a.example.com  and https://b.example.com/x?y=1   end"
        segments = find_links(content)
        assert "".join(s.text for s in segments) == content
        assert [s.url for s in segments if s.is_link] == [
            "http://a.example.com",
            "https://b.example.com/x?y=1",
        ]

    def test_trailing_punctuation_is_not_part_of_the_link(self):
        segments = find_links("Docs at https://example.com/docs.")
        assert segments[1].url == "https://example.com/docs"
        assert segments[2].text == "."

    def test_balanced_parentheses_stay_in_the_link(self):
        segments = find_links("(https://en.wikipedia.org/wiki/Shell_(computing))")
        assert segments[1].url == "https://en.wikipedia.org/wiki/Shell_(computing)"
        assert segments[2].text == ")"

    def test_render_line_carries_link_and_click_action(self):
        url = "https://ada.example.com/resume.pdf"
        text = render_line(output(f"Resume: {url}"))
        assert text.plain == f"Resume: {url}"
        styles = [span.style for span in text.spans if url in text.plain[span.start:span.end]]
        assert styles
        style = styles[0]
        assert style.link == url
        assert style.meta["@click"] == f"app.open_link({url!r})"

    def test_render_line_without_links_has_no_link_spans(self):
        text = render_line(info("note"))
        assert text.plain == "note"
        assert all(not getattr(span.style, "link", None) for span in text.spans)

    def test_kinds(self):
        assert {kind.value for kind in LineKind} == {"command", "output", "error", "info"}


# =============================================================================
# File syntax
# =============================================================================


class TestSyntax:
    """Tests for highlighting JSON and markdown file contents."""

    @pytest.mark.parametrize("path, expected", [
        ("/experience/northwind.json", "json"),
        ("/projects/cronwheel.md", "markdown"),
        ("/NOTES.MD", "markdown"),
        ("/about/bio.txt", None),
        ("/contact/README", None),
    ])
    def test_syntax_for(self, path, expected):
        assert syntax_for(path) == expected

    def test_json_keys_and_strings_are_styled(self):
        text = render_line(output('  "company": "Northwind",', "json"))
        styled = {text.plain[span.start:span.end]: span.style for span in text.spans}
        assert styled['"company"'] == "json.key"
        assert styled['"Northwind"'] == "json.str"

    def test_markdown_heading_is_bold(self):
        text = render_line(output("# Cronwheel", "markdown"))
        heading = [span.style for span in text.spans if span.start == 0 and span.end == len("# Cronwheel")]
        assert heading and heading[0].bold

    def test_plain_lines_are_not_highlighted(self):
        text = render_line(output('"key": 1'))
        assert text.spans == []

    def test_links_inside_json_stay_clickable(self):
        url = "https://northwind.example.com"
        text = render_line(output(f'  "link": "{url}"', "json"))
        assert any(getattr(span.style, "link", None) == url for span in text.spans)
