"""
Tests for robots.txt parsing and rule matching.
"""

import pytest

from lessonsource.config import DEFAULT_USER_AGENT
from lessonsource.privacy.robots import RobotsChecker, RobotsParser, product_token


@pytest.fixture
def parser() -> RobotsParser:
    return RobotsParser()


@pytest.fixture
def checker() -> RobotsChecker:
    return RobotsChecker(DEFAULT_USER_AGENT)


class TestRobotsParser:
    """Tests for RobotsParser."""

    def test_parse_permissive(self, parser: RobotsParser, sample_robots_txt_permissive: str) -> None:
        robots = parser.parse(sample_robots_txt_permissive)

        assert len(robots.groups) == 1
        assert robots.groups[0].user_agents == ["*"]
        assert [(r.path, r.allow) for r in robots.groups[0].rules] == [("/", True)]
        assert robots.has_directives

    def test_parse_restrictive(self, parser: RobotsParser, sample_robots_txt_restrictive: str) -> None:
        robots = parser.parse(sample_robots_txt_restrictive)

        assert [g.user_agents for g in robots.groups] == [["*"], ["googlebot"]]

    def test_consecutive_user_agents_share_group(self, parser: RobotsParser) -> None:
        robots = parser.parse("User-agent: a\nUser-agent: b\nDisallow: /x\nUser-agent: c\nDisallow: /y")

        assert [g.user_agents for g in robots.groups] == [["a", "b"], ["c"]]

    def test_comments_and_orphan_rules_are_ignored(self, parser: RobotsParser) -> None:
        content = "Disallow: /before\n# comment line\nUser-agent: * # everyone\nDisallow: /private # secret\n"
        robots = parser.parse(content)

        assert len(robots.groups) == 1
        assert [r.path for r in robots.groups[0].rules] == ["/private"]

    def test_empty_disallow_adds_no_rule(self, parser: RobotsParser) -> None:
        robots = parser.parse("User-agent: *\nDisallow:")

        assert robots.groups[0].rules == []
        assert not robots.has_directives

    def test_empty_content(self, parser: RobotsParser) -> None:
        assert parser.parse(None).groups == []
        assert parser.parse("").to_dict() == {"groups": []}


class TestRobotsChecker:
    """Tests for RobotsChecker."""

    def test_product_token(self) -> None:
        assert product_token(DEFAULT_USER_AGENT) == "lessonsource"
        assert product_token("Googlebot/2.1 (+http://www.google.com/bot.html)") == "googlebot"

    def test_wildcard_disallow(self, checker: RobotsChecker, sample_robots_txt_restrictive: str) -> None:
        allowed, _ = checker.parse_and_check("https://example.com/article", sample_robots_txt_restrictive)
        assert allowed is False

    def test_named_group_wins(self, sample_robots_txt_restrictive: str) -> None:
        googlebot = RobotsChecker("Googlebot/2.1")
        allowed, _ = googlebot.parse_and_check("https://example.com/article", sample_robots_txt_restrictive)
        assert allowed is True

    def test_own_group_preferred_over_wildcard(self, checker: RobotsChecker) -> None:
        content = "User-agent: lessonsource\nDisallow: /private\n\nUser-agent: *\nDisallow: /"

        assert checker.parse_and_check("https://example.com/public", content)[0] is True
        assert checker.parse_and_check("https://example.com/private/a", content)[0] is False

    def test_longest_match_wins(self, checker: RobotsChecker) -> None:
        content = "User-agent: *\nDisallow: /docs\nAllow: /docs/public"

        assert checker.parse_and_check("https://example.com/docs/public/a", content)[0] is True
        assert checker.parse_and_check("https://example.com/docs/private", content)[0] is False
        assert checker.parse_and_check("https://example.com/blog", content)[0] is True

    def test_allow_wins_tie(self, checker: RobotsChecker) -> None:
        content = "User-agent: *\nDisallow: /a\nAllow: /a"
        assert checker.parse_and_check("https://example.com/a/b", content)[0] is True

    def test_query_is_part_of_path(self, checker: RobotsChecker) -> None:
        content = "User-agent: *\nDisallow: /search?q="

        assert checker.parse_and_check("https://example.com/search?q=rivers", content)[0] is False
        assert checker.parse_and_check("https://example.com/search", content)[0] is True

    def test_no_matching_group_allows(self, checker: RobotsChecker) -> None:
        content = "User-agent: otherbot\nDisallow: /"
        assert checker.parse_and_check("https://example.com/", content)[0] is True
