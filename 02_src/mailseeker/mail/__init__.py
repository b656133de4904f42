"""Mail module."""

from .provider import GraphMailProvider, IMailProvider
from .search import MailSearch, apply_filter, mail_card

__all__ = [
    "GraphMailProvider",
    "IMailProvider",
    "MailSearch",
    "apply_filter",
    "mail_card",
]
