from __future__ import annotations


class QuickNotesError(Exception):
    pass


class AuthError(QuickNotesError):
    """Error reported by the identity provider.

    `code` follows the Firebase spelling (``auth/invalid-credential`` etc.)
    so both backends surface the same values to the views.
    """

    code = "auth/internal-error"

    def __init__(self, message: str = "", code: str | None = None):
        if code is not None:
            self.code = code
        super().__init__(message or self.code)


class InvalidCredentialsError(AuthError):
    code = "auth/invalid-credential"


class InvalidEmailError(AuthError):
    code = "auth/invalid-email"


class WeakPasswordError(AuthError):
    code = "auth/weak-password"


class EmailAlreadyInUseError(AuthError):
    code = "auth/email-already-in-use"


class FederatedLoginError(AuthError):
    code = "auth/federated-login-failed"


class FederatedLoginCancelledError(FederatedLoginError):
    code = "auth/popup-closed-by-user"


class ProviderUnavailableError(AuthError):
    code = "auth/network-request-failed"


class DocumentStoreError(QuickNotesError):
    pass


class DocumentNotFoundError(DocumentStoreError):
    pass
