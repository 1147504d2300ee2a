class PickupError(Exception):
    """Base class for every error raised by the match manager."""


class ConfigurationError(PickupError):
    """Raised when required configuration is missing or malformed."""


class InvalidPoolError(PickupError):
    """Raised when a filled pool cannot start a match."""


class MatchNotFoundError(PickupError):
    def __init__(self, match_id: int) -> None:
        self.match_id = match_id
        super().__init__(f"No active match with id {match_id}")


class ParticipantLockError(PickupError):
    pass


class AlreadyLockedError(ParticipantLockError):
    def __init__(self, participant_id: str, owner: int) -> None:
        self.participant_id = participant_id
        self.owner = owner
        super().__init__(f"Participant {participant_id} is already locked by match {owner}")


class NotLockedError(ParticipantLockError):
    def __init__(self, participant_id: str, match_id: int) -> None:
        self.participant_id = participant_id
        self.match_id = match_id
        super().__init__(f"Participant {participant_id} is not locked by match {match_id}")


class PersistenceError(PickupError):
    """Raised when the rating or match store fails to read or write."""
