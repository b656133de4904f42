"""Exception hierarchy for MailSeeker."""


class MailSeekerError(Exception):
    """Base exception for all MailSeeker errors."""


class ConfigurationError(MailSeekerError, ValueError):
    """A required argument or setting is missing or invalid."""


class CollaboratorError(MailSeekerError):
    """An external collaborator (auth, classifier, mail) call failed."""

    def __init__(self, collaborator: str, message: str):
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator


class UntrustedChannelError(MailSeekerError):
    """Invoke turn received from a channel that is not trusted."""
