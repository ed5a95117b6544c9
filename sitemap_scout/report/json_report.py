# sitemap_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта SitemapScout.

Сериализация объекта SitemapReport в файл.
"""
import json
from pathlib import Path

from sitemap_scout.aggregator import SitemapReport


def render_json(report: SitemapReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет отчёт report в формате JSON по указанному пути.

    :param report: объект SitemapReport с результатами обхода
    :param output_path: путь к JSON-файлу
    :param pretty: отступ 2 пробела
    :return: Path сохранённого файла

    Пример:
    ```python
    from sitemap_scout.report.json_report import render_json
    report_path = render_json(report, 'reports/report.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(report.to_dict(), f, ensure_ascii=False, indent=2 if pretty else None)

    return output
