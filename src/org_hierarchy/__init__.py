"""org-hierarchy - one organizational dataset, interchangeable traversal backends.

Load employees, departments and the company once, validate them, and answer
the same hierarchy queries by graph traversal, by relational fixed-point
joins, or by SQLite recursive CTEs, with directly comparable results.
"""

__version__ = "0.1.0"

from .exceptions import CycleDetected, HierarchyError, LoadError, NotFound, Violation, ViolationRule
from .models import Company, Department, Employee, EmploymentType, EmploysEdge, HierarchyHit
from .query import (
    AncestorsQuery,
    Backend,
    Comparison,
    DescendantsQuery,
    EmployeesByCompanyAttributeQuery,
    MembersOfDepartmentQuery,
    QueryFacade,
    QueryKind,
    QueryResult,
)
from .seed import SeedData, load_seed_file, sample_dataset
from .store import EntityStore
from .validation import ConsistencyValidator

__all__ = [
    # Models
    "Company",
    "Department",
    "Employee",
    "EmploymentType",
    "EmploysEdge",
    "HierarchyHit",
    # Loading
    "ConsistencyValidator",
    "EntityStore",
    "SeedData",
    "load_seed_file",
    "sample_dataset",
    # Querying
    "QueryFacade",
    "Backend",
    "QueryKind",
    "QueryResult",
    "Comparison",
    "AncestorsQuery",
    "DescendantsQuery",
    "MembersOfDepartmentQuery",
    "EmployeesByCompanyAttributeQuery",
    # Errors
    "HierarchyError",
    "LoadError",
    "CycleDetected",
    "NotFound",
    "Violation",
    "ViolationRule",
]
