"""Exit codes and error reporting shared by the CLI commands."""

from __future__ import annotations

import click

from commerce.domain.exceptions import DomainException, ErrorKind

EXIT_CODES = {
    ErrorKind.VALIDATION: 3,
    ErrorKind.NOT_FOUND: 4,
    ErrorKind.STOCK: 5,
    ErrorKind.COUPON: 6,
    ErrorKind.AUTHORIZATION: 7,
    ErrorKind.STATE_TRANSITION: 8,
    ErrorKind.CONFLICT: 9,
}
TRANSIENT_EXIT_CODE = 10


class CommandError(click.ClickException):
    """A ClickException whose exit code reflects the kind of failure."""

    def __init__(self, message: str, exit_code: int) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    @staticmethod
    def from_domain(exc: DomainException) -> CommandError:
        return CommandError(str(exc), EXIT_CODES[exc.kind])
