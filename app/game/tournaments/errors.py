from app.core.errors import (
    LedgerError,
    PreconditionFailure,
    StateConflict,
    ValidationFailure,
)


class TournamentError(LedgerError):
    pass


class TournamentNotFoundError(TournamentError, PreconditionFailure):
    """Tournament not found."""


class TournamentFormatMismatchError(TournamentError, PreconditionFailure):
    """Registration endpoint does not match the tournament format."""


class RegistrationNotOpenError(TournamentError, PreconditionFailure):
    """Registration has not started yet."""


class RegistrationClosedError(TournamentError, PreconditionFailure):
    """Registration period has ended."""


class TournamentFullError(TournamentError, PreconditionFailure):
    """Tournament is full."""


class AlreadyRegisteredError(TournamentError, PreconditionFailure):
    """Already registered for this tournament."""


class AlreadyCaptainError(TournamentError, PreconditionFailure):
    """You have already registered a squad for this tournament."""


class ProfileIncompleteError(TournamentError, PreconditionFailure):
    """Complete your profile with a game ID and in-game name first."""


class PartnerInfoRequiredError(TournamentError, ValidationFailure):
    """Partner game ID and in-game name are required."""


class InvalidGameIdError(TournamentError, ValidationFailure):
    """Game ID must be 10 to 12 digits."""


class TeamSizeMismatchError(TournamentError, PreconditionFailure):
    """Squad size does not match the tournament team size."""


class DuplicateGameIdError(TournamentError, PreconditionFailure):
    """Duplicate game IDs are not allowed in the same roster."""


class GameIdAlreadyRegisteredError(TournamentError, PreconditionFailure):
    """One or more game IDs are already registered in this tournament."""


class RegistrationNotFoundError(TournamentError, PreconditionFailure):
    """Registration not found."""


class RegistrationNotCancellableError(TournamentError, PreconditionFailure):
    """Only registrations with an unsettled payment can be cancelled."""


class WinnerEntryInvalidError(TournamentError, ValidationFailure):
    """Winner entries need a unique positive rank, a positive prize and exactly one recipient."""


class WinnerRecipientNotRegisteredError(TournamentError, PreconditionFailure):
    """Winner is not a paid registrant of this tournament."""


class WinnerRankConflictError(TournamentError, StateConflict):
    """This rank was already declared for a different recipient."""


class SquadMemberInfoRequiredError(TournamentError, ValidationFailure):
    """Every squad member needs a game ID and an in-game name."""
