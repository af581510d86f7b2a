from genalyzer.utilities.logging_config import setup_logging
from genalyzer.utilities.utilities import (
    assign_populations,
    load_population_table,
    read_alignment,
    select_strains,
)

__all__ = [
    "assign_populations",
    "load_population_table",
    "read_alignment",
    "select_strains",
    "setup_logging",
]
