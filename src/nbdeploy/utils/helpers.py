"""Helper utilities."""

from typing import Any

import click
from typer.core import TyperGroup


def ordered_group(order: list[str]) -> type[TyperGroup]:
    """Create a TyperGroup subclass that lists commands in the given order."""

    class _OrderedGroup(TyperGroup):
        def list_commands(self, ctx: Any) -> list[str]:
            commands = super().list_commands(ctx)
            rank = {n: i for i, n in enumerate(order)}
            return sorted(commands, key=lambda n: rank.get(n, 99))

    return _OrderedGroup


class StrictOptionGroup(TyperGroup):
    """TyperGroup that only accepts its options spelled exactly as declared.

    Click would otherwise read ``-cc`` as ``-c -c`` and report ``-dox`` as
    ``-o``. Checking stops at the first non-option token (the sub-command)
    or ``--``.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        declared = {
            name
            for param in self.get_params(ctx)
            for name in (*param.opts, *param.secondary_opts)
        }
        for token in args:
            if token == "--" or not token.startswith("-"):
                break
            if token.split("=", 1)[0] not in declared:
                raise click.NoSuchOption(token, ctx=ctx)
        return super().parse_args(ctx, args)
