# File: sitemap_scout/report/__init__.py
"""sitemap_scout.report: генерация отчётов (JSON и HTML) для CLI."""

from sitemap_scout.report.html_report import render_html
from sitemap_scout.report.json_report import render_json

__all__ = ["render_json", "render_html"]
