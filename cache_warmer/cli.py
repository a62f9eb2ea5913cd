# === FILE: cache_warmer/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска прогрева кеша через командную строку.

Команды:
  warm      Разрешить sitemap и прогреть все найденные страницы
  urls      Только разрешить sitemap и вывести список URL
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (configs/default.yaml, если существует)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (только stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда warm опции:
  --rate FLOAT         Запросов в секунду (override requests_per_second)
  --concurrency INT    Одновременных запросов (override max_concurrent)
  --user-agent TEXT    Заголовок User-Agent
  --run-timeout SEC    Таймаут всего запуска (секунд)
  --json               Вывести итоговую сводку в JSON
  --pretty             Преформатировать JSON-вывод (отступ 2)

Дополнительно:
  --version, -v       Показать версию

Пример:
  cache-warmer --log-file varnish-warming.log warm https://example.com/sitemap.xml --rate 4 --concurrency 8
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from cache_warmer import __version__
from cache_warmer.config import WarmerConfig, load_config
from cache_warmer.engine import resolve_urls, start_warm
from cache_warmer.errors import WarmerError
from cache_warmer.logger import DEFAULT_FORMAT, init_logging

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str, code: int = 1):
    click.secho(message, fg='red', err=True)
    sys.exit(code)


def _build_config(ctx: click.Context, **overrides) -> WarmerConfig:
    try:
        return load_config(ctx.obj['config_path'], **overrides)
    except (ValidationError, FileNotFoundError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='cache-warmer, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
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
    """Прогрев кеша (Varnish, nginx, CDN) по страницам из sitemap.xml."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('warm', context_settings=CONTEXT_SETTINGS)
@click.argument('sitemap_url', required=False)
@click.option(
    '--rate', '-r', 'requests_per_second',
    type=float, default=None,
    help='Запросов в секунду (override requests_per_second)'
)
@click.option(
    '--concurrency', '-n', 'max_concurrent',
    type=int, default=None,
    help='Одновременных запросов (override max_concurrent)'
)
@click.option(
    '--user-agent', '-u', 'user_agent',
    default=None,
    help='Заголовок User-Agent'
)
@click.option(
    '--run-timeout', 'run_timeout',
    type=float, default=None,
    help='Таймаут всего запуска (секунд)'
)
@click.option('--json', 'json_output', is_flag=True, help='Вывести сводку в JSON')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def warm(ctx, sitemap_url, requests_per_second, max_concurrent, user_agent,
         run_timeout, json_output, pretty):
    """Разрешить sitemap и прогреть все страницы."""
    cfg = _build_config(
        ctx,
        sitemap_url=sitemap_url,
        requests_per_second=requests_per_second,
        max_concurrent=max_concurrent,
        user_agent=user_agent,
    )
    try:
        if run_timeout:
            summary = asyncio.run(
                asyncio.wait_for(start_warm(cfg), timeout=run_timeout)
            )
        else:
            summary = asyncio.run(start_warm(cfg))
    except asyncio.TimeoutError:
        print_error(f'Прогрев не завершён за {run_timeout} секунд')
    except WarmerError as e:
        print_error(f'Прогрев прерван: {e}')

    if json_output:
        click.echo(summary.json(pretty=pretty))
    else:
        click.echo(
            f'Warmed {summary.success_count}/{summary.total_processed} URLs '
            f'({summary.failed_count} failed)'
        )


@cli.command('urls', context_settings=CONTEXT_SETTINGS)
@click.argument('sitemap_url', required=False)
@click.pass_context
def list_urls(ctx, sitemap_url):
    """Вывести URL из sitemap без прогрева (по одному в строке)."""
    cfg = _build_config(ctx, sitemap_url=sitemap_url)
    try:
        urls = asyncio.run(resolve_urls(cfg))
    except WarmerError as e:
        print_error(f'Ошибка разрешения sitemap: {e}')
    for url in sorted(urls):
        click.echo(url)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.argument('sitemap_url', required=False)
@click.pass_context
def show_config(ctx, sitemap_url):
    """Показать текущую конфигурацию в JSON."""
    cfg = _build_config(ctx, sitemap_url=sitemap_url)
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
