"""
GenAlyzer: population genetics of aligned gene sequences.

GenAlyzer stores annotated strain sequences per gene, classifies codon
substitutions along minimal evolutionary paths, and estimates diversity,
divergence and neutrality statistics per gene.

Example usage:
    # CLI
    $ genalyzer diversity --fasta genes.fasta --populations pops.tsv -p PopA -o PopB

    # Python
    >>> from genalyzer.codons import universal_table
    >>> universal_table().amino_acid("ATG")
    'M'
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("GenAlyzer")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["__version__"]
