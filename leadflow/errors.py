"""
Error taxonomy for the ingestion pipeline.

Each error knows the HTTP status it maps to, so blueprints can answer with
`error.status_code` without a lookup table.
"""


class LeadflowError(Exception):
    """Base class for every error the pipeline surfaces to a caller."""
    status_code = 500

    def __init__(self, message='', **details):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self):
        body = {'success': False, 'error': self.message}
        body.update(self.details)
        return body


class AuthenticationError(LeadflowError):
    """Missing/invalid API key or webhook signature. Never retried internally."""
    status_code = 401


class ValidationError(LeadflowError):
    """Payload too malformed to extract even a placeholder lead."""
    status_code = 400


class ConflictError(LeadflowError):
    """A composite identity that already exists — a success-shaped outcome."""
    status_code = 409


class DuplicateLeadError(ConflictError):
    """The store rejected an insert on the composite-identity constraint."""

    def __init__(self, composite_key):
        self.composite_key = composite_key
        super().__init__('Duplicate lead detected', composite_key=composite_key)


class DependencyError(LeadflowError):
    """Store failure or timeout. Transient: webhook redelivery is safe."""
    status_code = 500
