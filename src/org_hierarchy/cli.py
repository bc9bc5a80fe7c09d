"""CLI interface for org-hierarchy."""

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .exceptions import HierarchyError, LoadError
from .models import EmploymentType
from .query import (
    AncestorsQuery,
    Backend,
    DescendantsQuery,
    EmployeesByCompanyAttributeQuery,
    MembersOfDepartmentQuery,
    QueryFacade,
    QueryKind,
    QueryResult,
)
from .seed import SeedData, load_seed_file, sample_dataset
from .validation import ConsistencyValidator

app = typer.Typer(
    name="org-hierarchy",
    help="Compare graph and relational traversal of an organizational hierarchy",
    add_completion=False,
)
console = Console()


def get_config():
    """Load configuration from environment."""
    from dotenv import load_dotenv

    from .config import HierarchyConfig
    from .logging import configure_logging

    load_dotenv()
    config = HierarchyConfig.from_env()
    configure_logging(config.log_level, json=config.log_json)
    return config


def _load_seed(seed: Path | None, config) -> SeedData:
    path = seed or (Path(config.seed_path) if config.seed_path else None)
    if path is None:
        return sample_dataset()

    if not path.exists():
        console.print(f"[red]Error: File not found: {escape(str(path))}[/red]")
        raise typer.Exit(1)
    try:
        return load_seed_file(path)
    except ValidationError as e:
        console.print(f"[red]Error: Invalid seed file {escape(path.name)}:[/red]\n{escape(str(e))}")
        raise typer.Exit(1)


def _load_facade(seed: Path | None, config, record_timings: bool = False) -> QueryFacade:
    data = _load_seed(seed, config)
    try:
        store = data.build_store()
    except LoadError as e:
        _print_violations(e)
        raise typer.Exit(1)
    return QueryFacade(store, record_timings=record_timings or config.record_timings)


def _configured_backend(config) -> Backend:
    try:
        return Backend(config.default_backend)
    except ValueError:
        console.print(
            f"[red]Error: Unknown backend {escape(repr(config.default_backend))} "
            f"(HIERARCHY_DEFAULT_BACKEND)[/red]"
        )
        raise typer.Exit(1)


def _build_request(
    kind: QueryKind,
    target: str | None,
    max_depth: int | None,
    employment_type: EmploymentType | None,
    min_salary: float | None,
    max_salary: float | None,
):
    try:
        if kind == QueryKind.EMPLOYEES_BY_COMPANY_ATTRIBUTE:
            return EmployeesByCompanyAttributeQuery(
                employment_type=employment_type,
                min_salary=min_salary,
                max_salary=max_salary,
            )
        if not target:
            console.print(f"[red]Error: {kind.value} needs a TARGET identifier[/red]")
            raise typer.Exit(1)
        if kind == QueryKind.MEMBERS_OF_DEPARTMENT:
            return MembersOfDepartmentQuery(department_id=target)
        if kind == QueryKind.ANCESTORS:
            return AncestorsQuery(employee_id=target, max_depth=max_depth)
        return DescendantsQuery(employee_id=target, max_depth=max_depth)
    except ValidationError as e:
        console.print(f"[red]Error: Invalid query:[/red]\n{escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def validate(
    seed: Path = typer.Argument(None, help="JSON seed file (defaults to the sample dataset)"),
):
    """Check a dataset against every consistency rule."""
    config = get_config()
    data = _load_seed(seed, config)

    violations = ConsistencyValidator().validate(
        data.employees, data.departments, data.employs, data.company
    )
    if violations:
        _print_violations(LoadError(violations))
        raise typer.Exit(1)

    console.print(
        f"[green]Dataset valid: {len(data.employees)} employees, "
        f"{len(data.departments)} departments[/green]"
    )


@app.command()
def query(
    kind: QueryKind = typer.Argument(..., help="Query kind"),
    target: str = typer.Argument(None, help="Employee or department identifier"),
    backend: Backend = typer.Option(None, "--backend", "-b", help="Traversal backend [default: graph]"),
    max_depth: int = typer.Option(None, "--max-depth", "-d", min=0, help="REPORTS_TO hops to include"),
    employment_type: EmploymentType = typer.Option(None, "--type", "-t", help="EMPLOYS type filter"),
    min_salary: float = typer.Option(None, "--min-salary", help="EMPLOYS salary lower bound"),
    max_salary: float = typer.Option(None, "--max-salary", help="EMPLOYS salary upper bound"),
    seed: Path = typer.Option(None, "--seed", "-s", help="JSON seed file"),
    timings: bool = typer.Option(False, "--timings", help="Show query duration"),
):
    """Run one hierarchy query on one backend."""
    config = get_config()
    backend = backend or _configured_backend(config)
    request = _build_request(kind, target, max_depth, employment_type, min_salary, max_salary)

    with _load_facade(seed, config, record_timings=timings) as facade:
        try:
            result = facade.query(request, backend)
        except HierarchyError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(1)

    _display_result(result, title=f"{kind.value} ({backend.value})")
    if result.duration_ms is not None:
        console.print(f"[dim]{result.duration_ms:.3f} ms[/dim]")


@app.command()
def compare(
    kind: QueryKind = typer.Argument(..., help="Query kind"),
    target: str = typer.Argument(None, help="Employee or department identifier"),
    max_depth: int = typer.Option(None, "--max-depth", "-d", min=0, help="REPORTS_TO hops to include"),
    employment_type: EmploymentType = typer.Option(None, "--type", "-t", help="EMPLOYS type filter"),
    min_salary: float = typer.Option(None, "--min-salary", help="EMPLOYS salary lower bound"),
    max_salary: float = typer.Option(None, "--max-salary", help="EMPLOYS salary upper bound"),
    seed: Path = typer.Option(None, "--seed", "-s", help="JSON seed file"),
):
    """Run one query on every backend and check the answers agree."""
    config = get_config()
    request = _build_request(kind, target, max_depth, employment_type, min_salary, max_salary)

    with _load_facade(seed, config, record_timings=True) as facade:
        try:
            comparison = facade.compare(request)
        except HierarchyError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(1)

    table = Table(title=f"Comparison: {kind.value}")
    table.add_column("Backend")
    table.add_column("Results")
    table.add_column("Duration (ms)")
    table.add_column("Employees")

    for backend, result in comparison.results.items():
        table.add_row(
            backend.value,
            str(len(result.entries)),
            f"{result.duration_ms:.3f}" if result.duration_ms is not None else "-",
            escape(", ".join(result.employee_ids)),
        )
    console.print(table)

    if comparison.consistent:
        console.print("[green]All backends agree[/green]")
    else:
        mismatched = ", ".join(b.value for b in comparison.mismatched)
        console.print(f"[red]Backends disagree: {mismatched}[/red]")
        raise typer.Exit(1)


def _display_result(result: QueryResult, title: str):
    """Display a normalized query result."""
    if not result.entries:
        console.print("[yellow]No employees matched[/yellow]")
        return

    table = Table(title=title)
    table.add_column("#", style="dim")
    table.add_column("Employee")
    table.add_column("Depth")
    table.add_column("Department")

    for position, entry in enumerate(result.entries, start=1):
        table.add_row(
            str(position),
            escape(entry.employee.name),
            "-" if entry.depth is None else str(entry.depth),
            entry.employee.department_id,
        )
    console.print(table)


def _print_violations(error: LoadError):
    table = Table(title=f"{len(error.violations)} violation(s)")
    table.add_column("Rule", style="red")
    table.add_column("Subject")
    table.add_column("Detail")

    for violation in error.violations:
        table.add_row(violation.rule.value, escape(violation.subject_id), escape(violation.message))

    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
