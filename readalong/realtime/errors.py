class RelayError(Exception):
    pass


class InvalidPayload(RelayError):
    """Malformed or incomplete inbound event; reported to the sender only."""

    def __init__(self, message: str, ack_event: str = "error"):
        super().__init__(message)
        self.message = message
        self.ack_event = ack_event


class ParticipantNotFound(RelayError):
    """The connection id is not (or no longer) registered."""

    def __init__(self, connection_id: str):
        super().__init__(f"connection {connection_id} is not registered")
        self.connection_id = connection_id


class DuplicateConnection(RelayError):
    """A second registration for a connection id that is already present."""

    def __init__(self, connection_id: str):
        super().__init__(f"connection {connection_id} is already registered")
        self.connection_id = connection_id


class Unauthenticated(RelayError):
    """Bearer credential missing, malformed, or rejected."""

    def __init__(self, reason: str = "unauthorized"):
        super().__init__(reason)
        self.reason = reason
