# cli.py

"""
Точка входа для запуска SitemapScout из корня репозитория без установки.

Пример запуска:
    python cli.py sitemap example.com --limit 100 --json reports/report.json
"""
from sitemap_scout.cli import cli

if __name__ == '__main__':
    cli()
