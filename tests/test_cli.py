# File: tests/test_cli.py
"""Тесты для CLI (`sitemap_scout/cli.py`) с использованием click.testing.CliRunner.
Проверяют команды `sitemap`, `fetch`, `config`, `--version`, а также обработку ошибок.
"""
import asyncio
import importlib
import json

import pytest
from click.testing import CliRunner

from sitemap_scout.aggregator import SitemapReport
from sitemap_scout.cli import cli
from sitemap_scout.crawler.models import ContentResponse

cli_module = importlib.import_module("sitemap_scout.cli")


@pytest.fixture(autouse=True)
def patch_start_scan(monkeypatch):
    """Патчим start_scan, чтобы вернуть фиктивный отчёт без сети."""
    calls = []

    async def fake_scan(cfg, target, limit=None, fast=None):
        calls.append((target, limit, fast))
        return SitemapReport(
            origin="https://example.com",
            limit=cfg.clamp_limit(limit),
            urls=["https://example.com/a", "https://example.com/b"],
            sitemaps=["https://example.com/sitemap.xml"],
        )

    monkeypatch.setattr(cli_module, "start_scan", fake_scan)
    return calls


@pytest.fixture()
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SitemapScout" in result.output


def test_show_config(isolated):
    cfg_file = isolated / "config.json"
    cfg_file.write_text(json.dumps({"concurrency": 5}), encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["concurrency"] == 5
    assert data["max_limit"] == 20000


def test_bad_config_exits_with_error(isolated):
    cfg_file = isolated / "config.yaml"
    cfg_file.write_text("concurrency: -1", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output


def test_sitemap_stdout(isolated, patch_start_scan):
    runner = CliRunner()
    result = runner.invoke(cli, ["sitemap", "example.com", "--limit", "10", "--thorough"])
    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output == {
        "ok": True,
        "origin": "https://example.com",
        "count": 2,
        "limit": 10,
        "urls": ["https://example.com/a", "https://example.com/b"],
    }
    assert patch_start_scan == [("example.com", 10, False)]


def test_sitemap_json_file(isolated):
    out = isolated / "out" / "report.json"
    runner = CliRunner()
    result = runner.invoke(cli, ["sitemap", "example.com", "--json", str(out)])
    assert result.exit_code == 0
    assert out.exists()
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["urls"][0] == "https://example.com/a"
    assert data["limit"] == 5000


def test_sitemap_html_file(isolated):
    out = isolated / "report.html"
    runner = CliRunner()
    result = runner.invoke(cli, ["sitemap", "example.com", "--html", str(out)])
    assert result.exit_code == 0
    html = out.read_text(encoding="utf-8")
    assert "https://example.com/b" in html
    assert "https://example.com/sitemap.xml" in html


def test_sitemap_timeout(monkeypatch, isolated):
    async def slow(cfg, target, limit=None, fast=None):
        await asyncio.sleep(2)

    monkeypatch.setattr(cli_module, "start_scan", slow)

    runner = CliRunner()
    result = runner.invoke(cli, ["sitemap", "example.com", "--scan-timeout", "0.2"])
    assert result.exit_code != 0
    assert "не завершён" in result.output


def test_fetch_prints_body(monkeypatch, isolated):
    async def fake_fetch(cfg, url):
        return ContentResponse(status=200, content_type="text/html", body="<html>ok</html>")

    monkeypatch.setattr(cli_module, "fetch_content", fake_fetch)
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", "https://example.com/"])
    assert result.exit_code == 0
    assert "<html>ok</html>" in result.output


def test_fetch_failure_exit_code(monkeypatch, isolated):
    async def failing(cfg, url):
        return ContentResponse(status=502, content_type="text/plain; charset=utf-8", body="Proxy error: boom")

    monkeypatch.setattr(cli_module, "fetch_content", failing)
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", "https://example.com/"])
    assert result.exit_code == 1
    assert "Proxy error: boom" in result.output
