"""
Dashboard Errors
Exception types raised by the insights dashboard client.
"""


class DashboardError(Exception):
    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.status_code = status_code

    @property
    def message(self):
        return self.args[0]


class ConfigurationError(DashboardError):
    """Required configuration (API URL, user email source, ...) is missing"""
    def __init__(self, message):
        super().__init__(message, 500)


class IdentityResolutionError(DashboardError):
    def __init__(self, message="Unable to determine user email. Please ensure you are logged in."):
        super().__init__(message, 401)


class ScopeResolutionError(DashboardError):
    def __init__(self, message="Unable to determine your establishment"):
        super().__init__(message, 403)


class NoEstablishmentSelectedError(DashboardError):
    def __init__(self, message="No establishment selected"):
        super().__init__(message, 400)


class ApiError(DashboardError):
    """Transport or HTTP failure talking to the analytics service"""
    pass


class MissingFieldError(DashboardError):
    def __init__(self, message):
        super().__init__(message, 400)


class DataLoadError(DashboardError):
    """One of the dashboard facets could not be loaded"""
    def __init__(self, facet, cause=None):
        detail = cause.args[0] if cause is not None and cause.args else cause
        message = f"Failed to load {facet}: {detail}" if detail else f"Failed to load {facet}"
        status_code = getattr(cause, 'status_code', 502)
        super().__init__(message, status_code)
        self.facet = facet
        self.cause = cause
