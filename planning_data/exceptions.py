class PlanningDataError(Exception):
    """Base class for planning data search failures."""


class InvalidFilter(PlanningDataError):
    """The caller's filter was rejected before any request was made."""


class RegistryUnavailable(PlanningDataError):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class CacheUnavailable(PlanningDataError):
    """Reading or writing stored search records failed."""
