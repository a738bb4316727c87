"""
Tests for the command line interface.
"""

from pathlib import Path

from click.testing import CliRunner

from lessonsource.__main__ import main


class TestValidateCommand:
    """Tests for the validate command."""

    def test_short_text_fails(self, tmp_path: Path, short_text: str) -> None:
        path = tmp_path / "short.txt"
        path.write_text(short_text, encoding="utf-8")

        result = CliRunner().invoke(main, ["validate", str(path), "--language", "en", "--confidence", "0.9"])

        assert result.exit_code == 1
        assert "Content is too short" in result.output

    def test_prose_passes(self, tmp_path: Path, prose) -> None:
        path = tmp_path / "prose.txt"
        path.write_text(prose(400), encoding="utf-8")

        result = CliRunner().invoke(main, ["validate", str(path), "--language", "en", "--confidence", "0.9"])

        assert result.exit_code == 0
        assert "invalid" not in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["validate", str(tmp_path / "nope.txt")])
        assert result.exit_code != 0


class TestPageCommands:
    """Tests for analyze and extract on saved pages."""

    def test_analyze_article(self, tmp_path: Path, article_html: str, article_url: str) -> None:
        path = tmp_path / "page.html"
        path.write_text(article_html, encoding="utf-8")

        result = CliRunner().invoke(main, ["analyze", str(path), "--url", article_url])

        assert result.exit_code == 0
        assert "Suitable for lesson generation" in result.output

    def test_analyze_product(self, tmp_path: Path, product_html: str) -> None:
        path = tmp_path / "product.html"
        path.write_text(product_html, encoding="utf-8")

        result = CliRunner().invoke(main, ["analyze", str(path), "--url", "https://shop.example.com/item/1"])

        assert result.exit_code == 0
        assert "Not suitable" in result.output

    def test_extract_without_robots(self, tmp_path: Path, article_html: str, article_url: str) -> None:
        path = tmp_path / "page.html"
        path.write_text(article_html, encoding="utf-8")

        result = CliRunner().invoke(main, ["extract", str(path), "--url", article_url, "--skip-robots"])

        assert result.exit_code == 0
        assert "robots.txt will not be checked" in result.output
        assert "Suggested lesson" in result.output

    def test_extract_excluded_domain(self, tmp_path: Path, article_html: str) -> None:
        path = tmp_path / "page.html"
        path.write_text(article_html, encoding="utf-8")

        result = CliRunner().invoke(
            main, ["extract", str(path), "--url", "https://www.facebook.com/post/1", "--skip-robots"]
        )

        assert result.exit_code == 1
        assert "Blocked" in result.output
