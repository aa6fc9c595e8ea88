class ConflictError(RuntimeError):
    """Raised by an appointment store when the requested slot is already taken."""
    pass


class AppointmentStoreError(RuntimeError):
    """Raised when the appointment store cannot persist a booking (I/O failure)."""
    pass


class ConversationNotFoundError(LookupError):
    """Raised when a conversation id has no stored state."""
    pass
