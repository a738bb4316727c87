"""
Minimal robots.txt interpretation.

Supports user-agent groups and Allow/Disallow prefix rules. The longest
matching prefix decides, with Allow winning ties. Wildcards, crawl delays and
sitemaps are not interpreted.
"""

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse


@dataclass
class RobotsRule:
    """A single Allow or Disallow rule."""

    path: str
    allow: bool
    line_number: int = 0

    def matches(self, path: str) -> bool:
        return path.startswith(self.path)


@dataclass
class RobotsGroup:
    """Rules shared by one or more consecutive User-agent lines."""

    user_agents: list[str] = field(default_factory=list)
    rules: list[RobotsRule] = field(default_factory=list)


@dataclass
class RobotsTxt:
    """Parsed robots.txt file."""

    groups: list[RobotsGroup] = field(default_factory=list)
    raw_content: str = ""

    @property
    def has_directives(self) -> bool:
        return any(group.rules for group in self.groups)

    def to_dict(self) -> dict[str, Any]:
        return {
            "groups": [
                {
                    "user_agents": g.user_agents,
                    "rules": [{"path": r.path, "allow": r.allow} for r in g.rules],
                }
                for g in self.groups
            ],
        }


class RobotsParser:
    """Parser for robots.txt files."""

    def parse(self, content: str | None) -> RobotsTxt:
        """
        Parse robots.txt content.

        Lines that are not recognised directives are ignored, as are rules
        appearing before any User-agent line.
        """
        robots = RobotsTxt(raw_content=content or "")
        current_group: RobotsGroup | None = None

        for line_number, line in enumerate((content or "").splitlines(), start=1):
            line = line.split("#", 1)[0].strip()
            if not line or ":" not in line:
                continue

            directive, value = line.split(":", 1)
            directive = directive.strip().lower()
            value = value.strip()

            if directive == "user-agent":
                # Consecutive User-agent lines share one group
                if current_group is None or current_group.rules:
                    current_group = RobotsGroup()
                    robots.groups.append(current_group)
                if value:
                    current_group.user_agents.append(value.lower())

            elif directive == "disallow" and current_group is not None:
                if value:  # Empty Disallow allows everything
                    current_group.rules.append(
                        RobotsRule(path=value, allow=False, line_number=line_number)
                    )

            elif directive == "allow" and current_group is not None:
                if value:
                    current_group.rules.append(
                        RobotsRule(path=value, allow=True, line_number=line_number)
                    )

        return robots


def product_token(user_agent: str) -> str:
    """'LessonSource/1.0 (Educational...)' -> 'lessonsource'."""
    token = user_agent.strip().split("/", 1)[0].split(" ", 1)[0]
    return token.lower()


class RobotsChecker:
    """
    Decides whether a URL may be fetched under a parsed robots.txt.

    A group naming this tool is preferred over the '*' group.
    """

    def __init__(self, user_agent: str, default_allow: bool = True):
        self.user_agent = user_agent
        self.token = product_token(user_agent)
        self.default_allow = default_allow
        self._parser = RobotsParser()

    def find_group(self, robots_txt: RobotsTxt) -> RobotsGroup | None:
        wildcard: RobotsGroup | None = None
        for group in robots_txt.groups:
            for ua in group.user_agents:
                if ua != "*" and self.token.startswith(ua):
                    return group
                if ua == "*" and wildcard is None:
                    wildcard = group
        return wildcard

    def check_rules(self, path: str, rules: list[RobotsRule]) -> bool:
        """Longest matching rule wins; Allow wins a tie."""
        matching = [rule for rule in rules if rule.matches(path)]
        if not matching:
            return self.default_allow
        best = max(matching, key=lambda r: (len(r.path), r.allow))
        return best.allow

    def is_allowed(self, url: str, robots_txt: RobotsTxt) -> bool:
        parsed = urlparse(url)
        path = parsed.path or "/"
        if parsed.query:
            path = f"{path}?{parsed.query}"

        group = self.find_group(robots_txt)
        if group is None:
            return self.default_allow
        return self.check_rules(path, group.rules)

    def parse_and_check(self, url: str, content: str) -> tuple[bool, RobotsTxt]:
        """Parse robots.txt content and check a URL in one step."""
        robots_txt = self._parser.parse(content)
        return self.is_allowed(url, robots_txt), robots_txt
