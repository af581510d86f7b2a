"""
Analysis options shared by the diversity, synnonsyn and daf analyses.

Options are read from a YAML file whose top-level keys are the field names of
`AnalysisOptions`, for example::

    population: PopA
    outgroup: PopB
    max_strains: 20
    singleton_cutoff: 1.0
    jc_k: true
    ffd: false
"""

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml

from genalyzer.model.region import EXON

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOptions:
    """Selection and estimator switches for one analysis run."""

    population: str = ""
    outgroup: str = ""
    region: str = EXON
    # Upper bound on strains taken from each population, None for all.
    max_strains: Optional[int] = None
    singleton_cutoff: float = 1.0
    jc_pi: bool = False
    jc_theta: bool = False
    jc_k: bool = False
    use_terminal: bool = False
    exclude_terminal: bool = False
    exclude_small_blocks: bool = False
    ffd: bool = False
    # FFD mode: drop the whole site instead of only the offending codon.
    ffd_exclude_gaps: bool = False
    ffd_exclude_nonffd: bool = False
    # FFD mode: drop sites whose codons are not synonymous to the first one.
    ffd_exclude_nonsyn: bool = False
    constant_size: bool = False
    # Path to a custom codon table YAML, None for the universal code.
    codon_table: Optional[str] = None

    def updated(self, **overrides) -> "AnalysisOptions":
        """Copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **values)


def load_options(path: Union[str, Path]) -> AnalysisOptions:
    """
    Read and validate analysis options from a YAML file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file is not valid YAML, is not a mapping, names unknown options
        or holds out-of-range values.
    """
    path = Path(path)
    if not path.exists():
        logger.error(f"Configuration file not found: {path}")
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Error parsing configuration file: {e}")
        raise ValueError(f"Error parsing configuration file {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        logger.error(f"Configuration file {path} must contain a mapping")
        raise ValueError(f"Configuration file {path} must contain a mapping")

    known = {f.name for f in dataclasses.fields(AnalysisOptions)}
    unknown = sorted(set(raw) - known)
    if unknown:
        logger.error(f"Unknown configuration options: {unknown}")
        raise ValueError(f"Unknown configuration options: {unknown}")

    options = AnalysisOptions(**raw)
    validate_options(options)
    logger.info(f"Loaded analysis options from {path}")
    return options


def validate_options(options: AnalysisOptions) -> AnalysisOptions:
    """Check value ranges; raises ValueError on the first problem found."""
    problems = []
    if not isinstance(options.singleton_cutoff, (int, float)) or not (
        0 < options.singleton_cutoff <= 1
    ):
        problems.append(
            f"singleton_cutoff must be in (0, 1], got {options.singleton_cutoff!r}"
        )
    if options.max_strains is not None and (
        not isinstance(options.max_strains, int)
        or isinstance(options.max_strains, bool)
        or options.max_strains <= 0
    ):
        problems.append(
            f"max_strains must be a positive integer, got {options.max_strains!r}"
        )
    if not options.region:
        problems.append("region must not be empty")
    if problems:
        for problem in problems:
            logger.error(problem)
        raise ValueError(problems[0])
    return options
