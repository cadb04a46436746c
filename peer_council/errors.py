"""Council error taxonomy."""


class CouncilError(Exception):
    """Base class for council pipeline errors."""


class InsufficientResponsesError(CouncilError):
    """Raised when a council is requested with fewer than two candidate responses."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Council requires at least 2 responses, got {count}")


class LabelOverflowError(CouncilError):
    """Raised when there are more candidates than single-letter labels."""

    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(f"Cannot label {count} responses, at most {limit} are supported")


class RankingTransportError(CouncilError):
    """A ranker's completion request failed. Recovered into an invalid ranking."""

    def __init__(self, model_id: str, message: str) -> None:
        self.model_id = model_id
        super().__init__(f"Ranking request to {model_id} failed: {message}")


class SynthesisTransportError(CouncilError):
    """The chairman's completion request failed. Recovered into an error synthesis."""

    def __init__(self, model_id: str, message: str) -> None:
        self.model_id = model_id
        super().__init__(f"Synthesis request to {model_id} failed: {message}")
