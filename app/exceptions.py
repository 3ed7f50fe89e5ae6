"""
Custom exceptions for the RDM Health API.
Services raise these; routers translate them into HTTP responses.
"""


class RDMHealthError(Exception):
    """Base exception for the application"""

    public_message = "Request could not be processed"


class NotFoundError(RDMHealthError):
    """Raised when a record cannot be resolved"""

    public_message = "Record not found"


class PatientNotFound(NotFoundError):
    """Raised when no patient matches an id in any of its accepted forms"""

    public_message = "Patient not found"

    def __init__(self, patient_id: str):
        self.patient_id = patient_id
        super().__init__(f"Patient not found for ID: {patient_id}")


class PledgeNotFound(NotFoundError):
    """Raised when a pledge id is unknown"""

    public_message = "Pledge not found"

    def __init__(self, pledge_id: str):
        self.pledge_id = pledge_id
        super().__init__(f"Pledge with ID {pledge_id} not found")


class AccessDenied(RDMHealthError):
    """Raised when a provider asks for a patient assigned to someone else"""

    public_message = "Access denied: Patient not assigned to this provider"

    def __init__(self, provider_id: str, patient_id: str):
        self.provider_id = provider_id
        self.patient_id = patient_id
        super().__init__(f"Provider {provider_id} is not assigned to patient {patient_id}")


class ValidationError(RDMHealthError):
    """Raised when input fails a domain check"""

    public_message = "Invalid request"

    def __init__(self, field: str, message: str):
        self.field = field
        self.public_message = f"Invalid {field}: {message}"
        super().__init__(f"Validation error for {field}: {message}")


class InvalidPledgeTransition(RDMHealthError):
    """Raised when a pledge status change is not allowed"""

    public_message = "Pledge cannot change to the requested status"

    def __init__(self, pledge_id: str, current: str, target: str):
        self.pledge_id = pledge_id
        self.current = current
        self.target = target
        super().__init__(
            f"Pledge {pledge_id} cannot move from {current} to {target}"
        )


class NotificationError(RDMHealthError):
    """Raised by a notification sender when a message cannot be delivered"""

    def __init__(self, recipient: str, details: str):
        self.recipient = recipient
        self.details = details
        super().__init__(f"Notification to {recipient!r} failed: {details}")
