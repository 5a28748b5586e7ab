class PadelError(Exception):
    """Base class for every error raised by the organizer."""


class ValidationError(PadelError):
    """An entity was built or changed in a way that breaks one of its rules."""


class InvalidInput(PadelError):
    """Unknown tournament format / event type."""


class LocaleResolutionError(PadelError):
    """A month, weekday or language key has no translation."""


class TournamentNotFound(PadelError):
    pass
