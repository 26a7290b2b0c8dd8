"""Exceptions raised by upstream clients and the in-memory stores."""


class ProviderError(Exception):
    """An upstream provider call did not yield a usable value."""


class MalformedResponseError(ProviderError):
    """The provider answered, but the payload lacked the expected field."""


class SubscriptionLimitError(ValueError):
    """The user already holds the maximum number of subscriptions."""


class DuplicateSubscriptionError(ValueError):
    """The user is already subscribed to the ticker."""


class DuplicateUserError(ValueError):
    """An account already exists for the email address."""
