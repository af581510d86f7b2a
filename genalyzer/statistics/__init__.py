"""Site and codon compositions, sample-size blocks and basic estimators."""

from genalyzer.statistics.basic import (
    calculate_codon_k,
    calculate_codon_pi,
    calculate_k,
    calculate_pi,
    calculate_theta,
    jukes_cantor,
    tajima_d,
    tajima_d_blocks,
    tajima_d_codon_blocks,
    tajima_d_prime,
    tajima_d_prime_blocks,
    tajima_d_prime_codon_blocks,
)
from genalyzer.statistics.blocks import (
    CodonsBlock,
    SitesBlock,
    make_codons_blocks,
    make_sites_blocks,
)
from genalyzer.statistics.codon_composition import (
    CodonComposition,
    codon_composition_for_column,
)
from genalyzer.statistics.composition import SiteComposition, SiteType

__all__ = [
    "CodonComposition",
    "CodonsBlock",
    "SiteComposition",
    "SiteType",
    "SitesBlock",
    "calculate_codon_k",
    "calculate_codon_pi",
    "calculate_k",
    "calculate_pi",
    "calculate_theta",
    "codon_composition_for_column",
    "jukes_cantor",
    "make_codons_blocks",
    "make_sites_blocks",
    "tajima_d",
    "tajima_d_blocks",
    "tajima_d_codon_blocks",
    "tajima_d_prime",
    "tajima_d_prime_blocks",
    "tajima_d_prime_codon_blocks",
]
