from dataclasses import dataclass


@dataclass
class CVE:
    """A vulnerability identifier annotated with its EPSS score."""
    id: str
    severity: str = ''
    link: str = ''
    probability: float = 0.0
    percentile: float = 0.0
    scored: bool = False


@dataclass(frozen=True)
class EPSSScore:
    probability: float
    percentile: float
