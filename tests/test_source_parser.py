"""Tests for the search report parser."""
from citesearch.models.research import Source
from citesearch.tools.search_tool import format_search_report
from citesearch.tools.source_parser import (
    Pending,
    Ready,
    advance,
    host_is_excluded,
    parse_sources,
)

VIDEO_HOSTS = ("youtube.com", "youtu.be")


class TestParseSources:
    def test_alternating_pairs_in_order(self):
        report = (
            "**URL:** https://a.example\n"
            "**Description:** A site\n"
            "**URL:** https://b.example\n"
            "**Description:** B site"
        )
        assert parse_sources(report) == [
            Source(link="https://a.example", description="A site"),
            Source(link="https://b.example", description="B site"),
        ]

    def test_description_need_not_follow_immediately(self):
        report = "**URL:** https://a.example\n## noise\n\nsome excerpt text\n**Description:** A site"
        assert parse_sources(report) == [Source(description="A site", link="https://a.example")]

    def test_trailing_url_without_description_is_dropped(self):
        report = "**URL:** https://a.example\n**Description:** A\n**URL:** https://b.example\n"
        sources = parse_sources(report)
        assert [s.link for s in sources] == ["https://a.example"]

    def test_description_without_url_is_dropped(self):
        assert parse_sources("**Description:** orphan text") == []

    def test_values_are_stripped(self):
        report = "**URL:**   https://a.example   \n**Description:**   padded   "
        assert parse_sources(report) == [Source(description="padded", link="https://a.example")]

    def test_second_url_overwrites_pending_link(self):
        report = "**URL:** https://first.example\n**URL:** https://second.example\n**Description:** D"
        assert parse_sources(report) == [Source(description="D", link="https://second.example")]

    def test_description_before_url_still_pairs(self):
        report = "**Description:** early\n**URL:** https://a.example"
        assert parse_sources(report) == [Source(description="early", link="https://a.example")]

    def test_unrelated_lines_are_ignored(self):
        report = "# Web Results\nURL: https://plain.example\nDescription: not bold\n"
        assert parse_sources(report) == []

    def test_duplicates_are_kept(self):
        report = "**URL:** https://a.example\n**Description:** A\n" * 2
        assert len(parse_sources(report)) == 2

    def test_empty_and_non_string_input(self):
        assert parse_sources("") == []
        assert parse_sources("   \n  ") == []
        assert parse_sources(None) == []  # type: ignore[arg-type]
        assert parse_sources(b"**URL:** x") == []  # type: ignore[arg-type]

    def test_parses_formatted_search_report(self):
        payload = {
            "success": True,
            "data": {
                "web": [
                    {"title": "One", "url": "https://one.example", "description": "First", "markdown": "body"},
                    {"title": "Two", "url": "https://two.example", "description": "Second"},
                ],
                "news": [{"title": "Three", "url": "https://news.example", "description": "Third"}],
            },
        }
        sources = parse_sources(format_search_report(payload))
        assert [s.link for s in sources] == [
            "https://one.example",
            "https://two.example",
            "https://news.example",
        ]


class TestVideoExclusion:
    def test_video_url_dropped_even_with_description(self):
        report = (
            "**URL:** https://www.youtube.com/watch?v=abc\n"
            "**Description:** A video\n"
            "**URL:** https://youtu.be/xyz\n"
            "**Description:** Another video\n"
            "**URL:** https://a.example\n"
            "**Description:** Article\n"
        )
        assert parse_sources(report, excluded_hosts=VIDEO_HOSTS) == [
            Source(description="Article", link="https://a.example")
        ]

    def test_rejected_description_is_not_paired_with_next_link(self):
        report = (
            "**URL:** https://m.youtube.com/watch?v=abc\n"
            "**Description:** Video description\n"
            "**URL:** https://b.example\n"
            "**Description:** B description\n"
        )
        assert parse_sources(report, excluded_hosts=VIDEO_HOSTS) == [
            Source(description="B description", link="https://b.example")
        ]

    def test_video_kept_without_exclusion(self):
        report = "**URL:** https://youtube.com/watch?v=1\n**Description:** V"
        assert len(parse_sources(report)) == 1

    def test_host_match_is_not_a_substring_match(self):
        assert host_is_excluded("https://www.youtube.com/x", VIDEO_HOSTS) is True
        assert host_is_excluded("https://youtu.be/x", VIDEO_HOSTS) is True
        assert host_is_excluded("https://example.com/youtube.com-review", VIDEO_HOSTS) is False
        assert host_is_excluded("https://notyoutube.com/", VIDEO_HOSTS) is False
        assert host_is_excluded("https://a.example", ()) is False


class TestAdvance:
    def test_emits_ready_when_both_fields_present(self):
        state, displaced = advance(Pending(link="https://a.example"), "**Description:** A")
        assert state == Ready(Source(description="A", link="https://a.example"))
        assert displaced is None

    def test_ready_state_starts_a_fresh_record(self):
        ready = Ready(Source(description="A", link="https://a.example"))
        state, _ = advance(ready, "**Description:** B")
        assert state == Pending(description="B")

    def test_overwrite_reports_displaced_link(self):
        state, displaced = advance(Pending(link="https://old.example"), "**URL:** https://new.example")
        assert state == Pending(link="https://new.example")
        assert displaced == "https://old.example"

    def test_excluded_url_enters_rejected_state(self):
        state, displaced = advance(
            Pending(link="https://old.example"),
            "**URL:** https://youtu.be/abc",
            excluded_hosts=VIDEO_HOSTS,
        )
        assert state == Pending(rejected=True)
        assert displaced == "https://old.example"

        state, _ = advance(state, "**Description:** video", excluded_hosts=VIDEO_HOSTS)
        assert state == Pending()

    def test_non_matching_line_keeps_state(self):
        pending = Pending(link="https://a.example")
        assert advance(pending, "just text") == (pending, None)
