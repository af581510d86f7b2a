"""Per-gene population analyses returning pandas DataFrames."""

from genalyzer.analysis.daf import daf_analysis, frequency_spectrum
from genalyzer.analysis.diversity import diversity_analysis
from genalyzer.analysis.subst import subst_analysis
from genalyzer.analysis.synnonsyn import synnonsyn_analysis

__all__ = [
    "daf_analysis",
    "diversity_analysis",
    "frequency_spectrum",
    "subst_analysis",
    "synnonsyn_analysis",
]
