# __init__ for validate utils


from .core import (
    validate_geo_units,
    run_validation_checks,
    join_coverage,
    validate_rates,
    show_missingness,
)
from .orchestrator import run_validations

__all__ = [
    # Core validation
    "validate_geo_units",
    "run_validation_checks",
    "join_coverage",
    "validate_rates",
    "show_missingness",

    # Orchestrator
    "run_validations",
]
