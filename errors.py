"""Errors raised while handling a client message.

Each class carries the text sent back to the originating connection as an
``error`` event. None of them closes the connection.
"""


class SignalingError(Exception):
    message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class RoomNotFound(SignalingError):
    message = "Room does not exist"


class InvalidPassword(SignalingError):
    message = "Incorrect room password"


class MalformedRequest(SignalingError):
    message = "Malformed request"


class InvalidState(SignalingError):
    message = "Connection already belongs to a room"


class InternalFailure(SignalingError):
    message = "Internal server error"
