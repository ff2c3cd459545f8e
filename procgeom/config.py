from dataclasses import dataclass

# half-extent of the default super-triangle
DEFAULT_SIZE = 10000.0


@dataclass(frozen=True)
class TriangulationConfig:
    """Tuning knobs of the incremental triangulation."""

    # decimal places kept in the canonical vertex key, points sharing a key are duplicates
    precision: int = 9
    # in-circle determinant must exceed this for a triangle to be "bad"
    in_circle_tolerance: float = 0.0

    def __post_init__(self):
        if self.precision < 0:
            raise ValueError(f"precision must be >= 0, got {self.precision}")
        if self.in_circle_tolerance < 0:
            raise ValueError(f"in_circle_tolerance must be >= 0, got {self.in_circle_tolerance}")
