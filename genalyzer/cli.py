#!/usr/bin/env python3
"""
GenAlyzer CLI - Command Line Interface for GenAlyzer.

This module defines the CLI commands and arguments using Click. The analyses
themselves live in `genalyzer.analysis`.
"""

import functools
import logging
import sys

import click

from genalyzer import __version__
from genalyzer.analysis.daf import daf_analysis, frequency_spectrum
from genalyzer.analysis.diversity import diversity_analysis
from genalyzer.analysis.subst import subst_analysis
from genalyzer.analysis.synnonsyn import synnonsyn_analysis
from genalyzer.codons.tables import (
    AminoAcidNameType,
    CodonTableError,
    CustomCodonTable,
    load_codon_table,
    universal_table,
)
from genalyzer.config import AnalysisOptions, load_options, validate_options
from genalyzer.model.quality import QualityChecker
from genalyzer.utilities.logging_config import setup_logging
from genalyzer.utilities.utilities import (
    assign_populations,
    load_population_table,
    read_alignment,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Banner Display
# =============================================================================

BANNER = r"""
   ______           ___    __
  / ____/__  ____  /   |  / /_  ______  ___  _____
 / / __/ _ \/ __ \/ /| | / / / / /_  / / _ \/ ___/
/ /_/ /  __/ / / / ___ |/ / /_/ / / /_/  __/ /
\____/\___/_/ /_/_/  |_/_/\__, / /___/\___/_/
                         /____/
"""


def print_banner(err: bool = False):
    """Print the GenAlyzer banner; ``err`` sends it to stderr."""
    click.echo(click.style(BANNER, fg="cyan", bold=True), err=err)
    version_line = f"  Version {__version__}  |  Population genetics of coding sequences"
    click.echo(click.style(version_line, fg="bright_blue"), err=err)
    click.echo(click.style("-" * 60, fg="cyan"), err=err)
    click.echo(err=err)


class BannerGroup(click.Group):
    """Click group that shows the banner before help."""

    def format_help(self, ctx, formatter):
        print_banner()
        super().format_help(ctx, formatter)


@click.group(cls=BannerGroup, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-v", "--version")
@click.option("--quiet", "-q", is_flag=True, help="Do not print the banner.")
@click.pass_context
def cli(ctx, quiet):
    """
    GenAlyzer: diversity, divergence and selection statistics for aligned genes.

    \b
    Quick Start:
        1. Write a population table (TSV with 'strain' and 'population')
        2. Run an analysis:
           genalyzer diversity --fasta genes.fasta --populations pops.tsv -p PopA -o PopB
    """
    # The banner goes to stderr so that tables printed to stdout stay clean.
    if ctx.invoked_subcommand is not None and not quiet:
        print_banner(err=True)


# =============================================================================
# Shared Helpers
# =============================================================================


def analysis_options(func):
    """Options shared by the analysis commands."""
    options = [
        click.option(
            "--fasta",
            "-f",
            "fasta_file",
            type=click.Path(exists=True, dir_okay=False),
            required=True,
            help="Aligned FASTA file with record IDs of the form gene|strain.",
        ),
        click.option(
            "--populations",
            "population_file",
            type=click.Path(exists=True, dir_okay=False),
            required=True,
            help="TSV file with 'strain' and 'population' columns.",
        ),
        click.option(
            "--config",
            "-c",
            "config_file",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="YAML file with analysis options; command-line options override it.",
        ),
        click.option(
            "--gene",
            "gene_name",
            default=None,
            help="Treat the FASTA as one gene with this name; record IDs are strains.",
        ),
        click.option("--population", "-p", default=None, help="Population of interest."),
        click.option("--outgroup", "-o", default=None, help="Outgroup population."),
        click.option("--region", default=None, help="Region type to analyse [Exon]."),
        click.option(
            "--max-strains", type=int, default=None, help="Maximum strains per population."
        ),
        click.option(
            "--singleton-cutoff",
            type=float,
            default=None,
            help="Frequency cutoff for singletons; >= 0.5 means exactly one copy [1.0].",
        ),
        click.option(
            "--codon-table",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="Custom codon table YAML (default: universal genetic code).",
        ),
        click.option("--jc-pi/--no-jc-pi", default=None, help="Jukes-Cantor correct pi."),
        click.option(
            "--jc-theta/--no-jc-theta", default=None, help="Jukes-Cantor correct theta."
        ),
        click.option("--jc-k/--no-jc-k", default=None, help="Jukes-Cantor correct K."),
        click.option(
            "--exclude-small-blocks/--keep-small-blocks",
            default=None,
            help="Skip sites with fewer than 4 valid sequences.",
        ),
        click.option(
            "--output",
            "output_file",
            type=click.Path(dir_okay=False, writable=True),
            default=None,
            help="Write the result table here (TSV) instead of stdout.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_options(config_file, **overrides) -> AnalysisOptions:
    options = load_options(config_file) if config_file else AnalysisOptions()
    options = options.updated(**overrides)
    validate_options(options)
    if not options.population:
        raise click.UsageError(
            "A population of interest is required (--population or config file)."
        )
    return options


def _load_dataset(fasta_file, population_file, gene_name):
    dataset = read_alignment(fasta_file, gene_name)
    mapping = load_population_table(population_file)
    assign_populations(dataset, mapping)
    return dataset


def _write_table(frame, output_file):
    if output_file:
        frame.to_csv(output_file, sep="\t", index=False)
        logger.info(f"Results written to: {output_file}")
    else:
        click.echo(frame.to_csv(sep="\t", index=False), nl=False)


def handle_input_errors(func):
    """Turn input and configuration errors into click errors."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ValueError, FileNotFoundError) as e:
            raise click.ClickException(str(e)) from e

    return wrapper


# =============================================================================
# Analysis Commands
# =============================================================================


@cli.command("diversity")
@analysis_options
@click.option("--ffd/--all-sites", default=None, help="Use four-fold degenerate sites only.")
@handle_input_errors
def diversity_command(
    fasta_file, population_file, config_file, gene_name, output_file, **overrides
):
    """
    Nucleotide diversity, Tajima's D and divergence per gene.

    \b
    Examples:
        genalyzer diversity -f genes.fasta --populations pops.tsv -p PopA -o PopB
        genalyzer diversity -f genes.fasta --populations pops.tsv -c opts.yml --ffd
    """
    options = _build_options(config_file, **overrides)
    dataset = _load_dataset(fasta_file, population_file, gene_name)
    table = load_codon_table(options.codon_table)
    _write_table(diversity_analysis(dataset, options, table), output_file)


@cli.command("synnonsyn")
@analysis_options
@click.option(
    "--use-terminal/--no-use-terminal",
    default=None,
    help="Allow terminal codons as intermediates of evolutionary paths.",
)
@click.option(
    "--exclude-terminal/--keep-terminal",
    default=None,
    help="Skip the last codon column when it holds a terminal codon.",
)
@handle_input_errors
def synnonsyn_command(
    fasta_file, population_file, config_file, gene_name, output_file, **overrides
):
    """
    Synonymous and nonsynonymous diversity and divergence per gene.

    Also reports McDonald-Kreitman style counts of polymorphic (Ps, Pn) and
    fixed (Ds, Dn) changes against the outgroup.
    """
    options = _build_options(config_file, **overrides)
    dataset = _load_dataset(fasta_file, population_file, gene_name)
    table = load_codon_table(options.codon_table)
    _write_table(synnonsyn_analysis(dataset, options, table), output_file)


@cli.command("daf")
@analysis_options
@click.option("--ffd/--all-sites", default=None, help="Use four-fold degenerate sites only.")
@click.option(
    "--constant-size/--observed-size",
    default=None,
    help="Divide allele counts by the population size instead of the valid bases.",
)
@click.option(
    "--spectrum",
    "bins",
    type=int,
    default=None,
    help="Print a frequency spectrum with this many bins instead of single alleles.",
)
@handle_input_errors
def daf_command(
    fasta_file, population_file, config_file, gene_name, output_file, bins, **overrides
):
    """Derived allele frequencies, polarized with the outgroup."""
    options = _build_options(config_file, **overrides)
    dataset = _load_dataset(fasta_file, population_file, gene_name)
    table = load_codon_table(options.codon_table)
    frame = daf_analysis(dataset, options, table)
    if bins is not None:
        if bins < 1:
            raise click.BadParameter("must be positive", param_hint="--spectrum")
        frame = frequency_spectrum(frame, bins)
    _write_table(frame, output_file)


@cli.command("subst")
@analysis_options
@click.option(
    "--coding/--sites",
    default=False,
    help="Split changes along codon paths into synonymous and nonsynonymous.",
)
@click.option("--ffd/--all-sites", default=None, help="Use four-fold degenerate sites only.")
@click.option(
    "--use-terminal/--no-use-terminal",
    default=None,
    help="Allow terminal codons as intermediates of evolutionary paths.",
)
@handle_input_errors
def subst_command(
    fasta_file, population_file, config_file, gene_name, output_file, coding, **overrides
):
    """
    Counts of the six base pair classes per gene.

    One row per gene and category: population, paired and divergent.

    \b
    Examples:
        genalyzer subst -f genes.fasta --populations pops.tsv -p PopA -o PopB
        genalyzer subst -f genes.fasta --populations pops.tsv -p PopA --coding
    """
    options = _build_options(config_file, **overrides)
    dataset = _load_dataset(fasta_file, population_file, gene_name)
    table = load_codon_table(options.codon_table)
    _write_table(subst_analysis(dataset, options, table, coding), output_file)


@cli.command("quality")
@click.option(
    "--fasta",
    "-f",
    "fasta_file",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="Aligned FASTA file with record IDs of the form gene|strain.",
)
@click.option(
    "--populations",
    "population_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="TSV file with 'strain' and 'population' columns.",
)
@click.option("--gene", "gene_name", default=None, help="Name for a single-gene FASTA.")
@click.option(
    "--codon-table",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Custom codon table YAML.",
)
@handle_input_errors
def quality_command(fasta_file, population_file, gene_name, codon_table):
    """Report the annotation quality level (0 best, 5 worst) of each gene."""
    dataset = read_alignment(fasta_file, gene_name)
    if population_file:
        assign_populations(dataset, load_population_table(population_file))
    checker = QualityChecker(load_codon_table(codon_table))
    checker.validate_dataset(dataset)
    dataset.sort_by_quality()
    click.echo("gene\tstrains\tquality\tproblems")
    for gene in dataset:
        notes = gene.annotations.quality_description
        if not notes:
            notes = ";".join(
                s.annotations.quality_description
                for s in gene.strains
                if s.annotations.quality_description
            )
        click.echo(
            f"{gene.common_name}\t{len(gene)}\t{gene.annotations.quality_level}\t{notes}"
        )


# =============================================================================
# Codon Table Commands
# =============================================================================


@cli.group("codon-table")
def codon_table_group():
    """Inspect, export and check codon tables."""


@codon_table_group.command("show")
@click.option(
    "--table",
    "table_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Custom codon table YAML (default: universal genetic code).",
)
def show_table(table_file):
    """Print every codon with its amino acid, flags and fold family."""
    try:
        table = load_codon_table(table_file)
    except CodonTableError as e:
        raise click.ClickException(str(e)) from e
    click.echo(click.style(table.name, fg="cyan", bold=True))
    click.echo("codon\tamino_acid\ttlc\tolc\tterminal\tstart\tfold")
    for codon in table.codons():
        click.echo(
            "\t".join(
                [
                    codon,
                    table.amino_acid(codon, AminoAcidNameType.FULL),
                    table.amino_acid(codon, AminoAcidNameType.THREE_LETTER),
                    table.amino_acid(codon, AminoAcidNameType.ONE_LETTER),
                    str(table.is_terminal(codon)),
                    str(table.is_start(codon)),
                    str(table.fold_family(codon)),
                ]
            )
        )


@codon_table_group.command("export")
@click.argument("output", type=click.Path(dir_okay=False, writable=True))
@click.option("--name", default="Custom genetic code", show_default=True)
def export_table(output, name):
    """Write the universal genetic code as an editable YAML template."""
    try:
        CustomCodonTable.from_table(universal_table(), name).save(output)
    except CodonTableError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Codon table template written to: {output}")


@codon_table_group.command("check")
@click.argument("table_file", type=click.Path(exists=True, dir_okay=False))
def check_table(table_file):
    """Validate a custom codon table file."""
    try:
        table = CustomCodonTable.load(table_file)
    except CodonTableError as e:
        raise click.ClickException(f"Invalid codon table: {e}") from e
    n_terminal = sum(1 for c in table.codons() if table.is_terminal(c))
    click.echo(
        f"{table.name}: 64 codons, {n_terminal} terminal, "
        f"{sum(1 for c in table.codons() if table.is_start(c))} start"
    )


def main():
    """Entry point for the GenAlyzer CLI."""
    setup_logging()

    try:
        cli(standalone_mode=False)
    except click.exceptions.Abort:
        click.echo("\nOperation cancelled.", err=True)
        sys.exit(130)
    except KeyboardInterrupt:
        click.echo("\nInterrupted.", err=True)
        sys.exit(130)
    except SystemExit as e:
        sys.exit(e.code)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":

    main()
