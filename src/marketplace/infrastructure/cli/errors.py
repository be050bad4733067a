"""Maps domain errors onto click's error reporting."""

from __future__ import annotations

import click

from marketplace.domain.exceptions import DomainException


def to_click(exc: DomainException) -> click.ClickException:
    """Render as ``[kind] message`` so scripts can match on the kind."""
    return click.ClickException(f"[{exc.kind}] {exc}")
