"""Mail-related data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EmailAddress:
    """Sender display name and address."""

    name: str
    address: str


@dataclass(frozen=True)
class MailMessage:
    """One inbox message as returned by the mail provider."""

    id: str
    subject: str
    sender: EmailAddress
    body_preview: str
    web_link: str


@dataclass(frozen=True)
class MailFilter:
    """User constraints for a mail search. Empty strings are unconstrained."""

    sender: str = ""
    subject: str = ""
    count: int = 1  # most recent one

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError("MailFilter.count must be a positive integer")
