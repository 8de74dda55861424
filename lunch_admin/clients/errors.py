class ClientError(Exception):
    """Base error raised by the identity provider and document store adapters."""

class AccountNotFoundError(ClientError):
    pass

class AccountExistsError(ClientError):
    pass

class DocumentNotFoundError(ClientError):
    pass
