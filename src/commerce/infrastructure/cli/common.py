"""Small helpers shared by the CLI commands."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import click

from commerce.application.dto import BatchReport


def as_utc(value: datetime | None) -> datetime | None:
    """Treat a naive command-line datetime as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def load_json_list(path: str) -> list[dict]:
    with open(path, encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise click.BadParameter(f"{path} is not valid JSON: {exc}")
    if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
        raise click.BadParameter(f"{path} must contain a JSON list of objects")
    return data


def echo_batch_report(report: BatchReport) -> None:
    click.echo(f"{len(report.successful)} succeeded, {len(report.failed)} failed")
    for result in report.failed:
        click.echo(f"  FAILED {result.key}: [{result.error_kind}] {result.message}")
