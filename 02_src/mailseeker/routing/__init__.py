"""Routing module."""

from .router import IntentRouter, mail_filter_from_entities

__all__ = ["IntentRouter", "mail_filter_from_entities"]
