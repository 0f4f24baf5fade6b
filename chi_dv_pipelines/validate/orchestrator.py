# Master validation orchestrator that runs all validation checks

from rich.console import Console
from typing import Dict, Any

from .core import run_validation_checks, show_missingness, validate_rates, join_coverage

console = Console()


def run_validations(outputs: Dict[str, Any], min_coverage: float = 0.95) -> Dict[str, Any]:
    """
    Run standard validation checks on transform output.

    Parameters:
        outputs: Dict returned by run_transforms
        min_coverage: Share of incidents expected inside a block group

    Returns:
        The same dict (unmodified)
    """
    console.print("\n[bold cyan]=== VALIDATION PIPELINE START ===[/bold cyan]\n")

    incidents = outputs["incidents"]
    run_validation_checks(incidents, "All incidents")
    run_validation_checks(outputs["dv_incidents"], "DV incidents")

    coverage = join_coverage(incidents)
    if coverage < min_coverage:
        console.print(
            f"[bold yellow]WARNING: only {coverage:.1%} of incidents matched a block group "
            f"(expected ≥ {min_coverage:.0%}).[/bold yellow]"
        )
    else:
        console.print(f"[green]PASS: {coverage:.1%} of incidents matched a block group.[/green]")

    validate_rates(outputs["monthly_rates"])
    validate_rates(outputs["window_rates"])

    show_missingness(outputs["units"], "Block group demographics")

    console.print("\n[green]Validation completed successfully.[/green]\n")
    return outputs


__all__ = ["run_validations"]
