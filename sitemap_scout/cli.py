# === FILE: sitemap_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа SitemapScout для командной строки.

Команды:
  sitemap   Найти все страницы сайта через дерево sitemap
  fetch     Загрузить одну страницу с эскалацией (варианты URL, прокси-рендерер)
  config    Показать текущую конфигурацию
  serve     Запустить HTTP API (aiohttp)

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда sitemap опции:
  --limit INT         Макс. число URL (по умолчанию из конфига, потолок max_limit)
  --fast/--thorough   Строгий или полный режим обработки волны
  --json PATH         Сохранить JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --template DIR      Папка с Jinja2-шаблонами
  --pretty            Преформатировать JSON-вывод (отступ 2)
  --scan-timeout SEC  Таймаут всего обхода (секунд)

Пример:
  sitemap-scout sitemap example.com --limit 100 --json report.json
"""
import asyncio
import sys
from pathlib import Path

import click

from sitemap_scout import __version__
from sitemap_scout.config import load_config
from sitemap_scout.engine import fetch_content, start_scan
from sitemap_scout.logger import DEFAULT_FORMAT, init_logging
from sitemap_scout.report.html_report import render_html
from sitemap_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SitemapScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SitemapScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('sitemap', context_settings=CONTEXT_SETTINGS)
@click.argument('target')
@click.option('--limit', '-l', 'limit', type=int, default=None, help='Макс. число URL')
@click.option('--fast/--thorough', 'fast', default=None, help='Режим обработки волны')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами (по умолчанию встроенная)'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option('--scan-timeout', 'scan_timeout', type=float, default=None, help='Таймаут всего обхода (секунд)')
@click.pass_context
def sitemap(ctx, target, limit, fast, json_output, html_output, template_dir, pretty, scan_timeout):
    """Найти страницы сайта TARGET через robots.txt и дерево sitemap."""
    cfg = ctx.obj['config']
    try:
        if scan_timeout:
            report = asyncio.run(
                asyncio.wait_for(start_scan(cfg, target, limit, fast), timeout=scan_timeout)
            )
        else:
            report = asyncio.run(start_scan(cfg, target, limit, fast))
    except asyncio.TimeoutError:
        print_error(f'Обход не завершён за {scan_timeout} секунд')
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    # Если не сохраняем в файл, печатаем в stdout
    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=True)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('fetch', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option(
    '--output', '-o', 'output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить тело ответа в файл'
)
@click.pass_context
def fetch(ctx, url, output):
    """Загрузить одну страницу URL с эскалацией."""
    cfg = ctx.obj['config']
    result = asyncio.run(fetch_content(cfg, url))
    if result.status >= 400:
        print_error(f'{result.status}: {result.body}')
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.body, encoding='utf-8')
        click.echo(f'{result.status} {result.content_type} -> {output}')
        return
    click.echo(result.body)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', default='127.0.0.1', show_default=True, help='Адрес для прослушивания')
@click.option('--port', '-p', default=8080, show_default=True, type=int, help='Порт')
@click.pass_context
def serve(ctx, host, port):
    """Запустить HTTP API: /api/sitemap и /api/fetch."""
    from sitemap_scout.server import run_server

    run_server(ctx.obj['config'], host=host, port=port)


if __name__ == "__main__":
    cli()
