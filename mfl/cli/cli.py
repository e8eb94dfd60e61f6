import logging

import click
from click import File

from mfl.lib.errors import LangError
from mfl.lib.interpreter import evaluate, infer_type
from mfl.lib.nodes import Node
from mfl.lib.parser import parse_program
from mfl.lib.typesystem import minimize

logger = logging.getLogger(__name__)


def configure(debug: bool) -> None:
    if debug:
        logging.basicConfig(level=logging.DEBUG)


def run(source: str, typecheck: bool, show_ast: bool) -> None:
    try:
        program: Node = parse_program(source)
        logger.debug("AST: %s", program)
        if show_ast:
            click.echo(program.display())
        if typecheck:
            ty = infer_type(program)
            logger.debug("type: %s", minimize(ty))
        click.echo(str(evaluate(program)))
    except LangError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def main() -> None:
    """Evaluate and type-check MFL programs."""


@main.command(name="eval")
@click.argument("program-file", type=File(), default="-")
@click.option("--debug", is_flag=True)
@click.option("--no-check", is_flag=True, help="Skip type inference before evaluating.")
@click.option("--ast", "show_ast", is_flag=True, help="Print the parsed program first.")
def eval_command(program_file: File, debug: bool, no_check: bool, show_ast: bool) -> None:
    configure(debug)
    program = program_file.read()  # type: ignore [attr-defined]
    run(program, not no_check, show_ast)


@main.command(name="check")
@click.argument("program-file", type=File(), default="-")
@click.option("--debug", is_flag=True)
def check_command(program_file: File, debug: bool) -> None:
    configure(debug)
    program = program_file.read()  # type: ignore [attr-defined]
    try:
        click.echo(str(minimize(infer_type(parse_program(program)))))
    except LangError as e:
        raise click.ClickException(str(e)) from e


@main.command(name="apply")
@click.argument("program", type=str, required=True)
@click.option("--debug", is_flag=True)
@click.option("--no-check", is_flag=True, help="Skip type inference before evaluating.")
def apply_command(program: str, debug: bool, no_check: bool) -> None:
    configure(debug)
    run(program, not no_check, False)


if __name__ == "__main__":
    main()
