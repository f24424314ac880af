from __future__ import annotations


class CompetitionError(RuntimeError):
    """Base class for failures surfaced by the standings engine."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidQuery(CompetitionError):
    """Malformed scope parameters; surfaced to the caller, never retried."""

    status_code = 400


class PreconditionViolated(CompetitionError):
    """An upstream filtering invariant was broken (e.g. a scheduled match reached the aggregator)."""

    status_code = 500


class DependencyUnavailable(CompetitionError):
    """A collaborator (result store, team registry) failed; retries belong to the caller."""

    status_code = 503

    def __init__(self, message: str, *, dependency: str | None = None):
        super().__init__(message)
        self.dependency = dependency
