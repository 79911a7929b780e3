import logging

import click

from .engine import PiResult, compute_pi, run_rank
from .formats import FORMATS, serialize_result
from .group import MpiGroup
from .planner import BIT_MARGIN, TERM_MARGIN, TRANSPORT_MARGIN, plan
from .render import fractional_digits, integer_part, render_grouped
from .verify import verify_digits


def _setup_logging(verbose: bool):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(processName)s %(name)s: %(message)s")


def _margins(bit_margin: int, term_margin: int, transport_margin: int):
    return {"bit_margin": bit_margin, "term_margin": term_margin, "transport_margin": transport_margin}


def _check_digits(digits: int):
    if digits < 1:
        raise click.ClickException("--digits must be >= 1")


def _margin_options(f):
    f = click.option("--transport-margin", default=TRANSPORT_MARGIN, show_default=True, type=click.IntRange(min=0))(f)
    f = click.option("--term-margin", default=TERM_MARGIN, show_default=True, type=click.IntRange(min=0))(f)
    f = click.option("--bit-margin", default=BIT_MARGIN, show_default=True, type=click.IntRange(min=0))(f)
    return f


def _output_options(f):
    f = click.option("--verbose", "-v", is_flag=True)(f)
    f = click.option("--quiet", "-q", is_flag=True)(f)
    f = click.option("--verify/--no-verify", default=False, show_default=True)(f)
    f = click.option("--out", "out_path", default="", show_default=True)(f)
    f = click.option("--format", "fmt", type=click.Choice(FORMATS, case_sensitive=False), default="txt", show_default=True)(f)
    return f


def _emit(result: PiResult, fmt: str, out_path: str, verify: bool, quiet: bool):
    p = result.plan
    frac = fractional_digits(result.value, p.digits)
    if verify:
        ok, index = verify_digits(frac, p.digits)
        if not ok:
            raise click.ClickException(f"verification failed at digit {index + 1}")
    if out_path:
        meta = {"digits": p.digits, "workers": result.group_size, "terms": p.term_count, "working_bits": p.working_bits}
        payload, _ = serialize_result(integer_part(result.value) + "." + frac, fmt, meta)
        with open(out_path, "wb") as f:
            f.write(payload)
    if quiet:
        click.echo(integer_part(result.value) + "." + frac)
    else:
        click.echo("=== BBP parallel pi ===")
        click.echo(f"processes: {result.group_size}")
        click.echo(f"digits: {p.digits}")
        click.echo(f"terms: {p.term_count}")
        click.echo(f"working bits: {p.working_bits}")
        click.echo("")
        click.echo(render_grouped(result.value, p.digits))
        click.echo("")
        click.echo(f"elapsed: {result.elapsed:.3f} s")
        if verify:
            click.echo("verified")
    if out_path:
        click.echo(out_path)


@click.group(context_settings={"help_option_names": ["-h", "--help"], "auto_envvar_prefix": "DIGITMESH"})
def main():
    pass


@main.command()
@click.option("--digits", default=100, show_default=True, type=int)
@click.option("--workers", default=1, show_default=True, type=click.IntRange(min=1))
@click.option("--start-method", type=click.Choice(["fork", "spawn", "forkserver"]), default=None)
@_margin_options
@_output_options
def compute(
    digits: int,
    workers: int,
    start_method: str,
    bit_margin: int,
    term_margin: int,
    transport_margin: int,
    fmt: str,
    out_path: str,
    verify: bool,
    quiet: bool,
    verbose: bool,
):
    """Compute pi on a group of local worker processes."""
    _setup_logging(verbose)
    _check_digits(digits)
    result = compute_pi(digits, workers=workers, start_method=start_method, **_margins(bit_margin, term_margin, transport_margin))
    _emit(result, fmt.lower(), out_path, verify, quiet)


@main.command()
@click.option("--digits", default=100, show_default=True, type=int)
@_margin_options
@_output_options
def mpi(
    digits: int,
    bit_margin: int,
    term_margin: int,
    transport_margin: int,
    fmt: str,
    out_path: str,
    verify: bool,
    quiet: bool,
    verbose: bool,
):
    """Run as one rank of ``mpiexec -n N digitmesh mpi``."""
    _setup_logging(verbose)
    group = MpiGroup()
    if digits < 1:
        if group.is_coordinator:
            raise click.ClickException("usage: mpiexec -n N digitmesh mpi --digits D (D >= 1)")
        raise SystemExit(1)
    p = plan(digits, **_margins(bit_margin, term_margin, transport_margin))
    group.comm.Barrier()
    result = run_rank(group, p)
    if result is not None:
        _emit(result, fmt.lower(), out_path, verify, quiet)


@main.command("plan")
@click.option("--digits", default=100, show_default=True, type=int)
@_margin_options
def plan_cmd(digits: int, bit_margin: int, term_margin: int, transport_margin: int):
    """Show working precision, term count and buffer size for a digit count."""
    _check_digits(digits)
    p = plan(digits, **_margins(bit_margin, term_margin, transport_margin))
    click.echo(f"digits: {p.digits}")
    click.echo(f"working bits: {p.working_bits}")
    click.echo(f"terms: {p.term_count}")
    click.echo(f"transport digits: {p.transport_digits}")
    click.echo(f"buffer size: {p.buffer_size}")
