from dataclasses import dataclass, field


# Data Models
@dataclass
class ValidationResult:
    """Result of running a single test document"""
    test_id: str
    operation: str
    mode: str  # "sync" or "async"
    passed: bool
    errors: list[str] = field(default_factory=list)
