class TreasuryFlowError(Exception):
    http_status = 400


class UnauthorizedError(TreasuryFlowError):
    http_status = 403


class NotFoundError(TreasuryFlowError):
    http_status = 404


class RequestNotFoundError(NotFoundError):
    pass


class CredentialNotFoundError(NotFoundError):
    pass


class InvalidStatusError(TreasuryFlowError):
    http_status = 409


class NotApprovedError(InvalidStatusError):
    pass


class InvalidInputError(TreasuryFlowError):
    http_status = 400


class InvalidAmountError(InvalidInputError):
    pass


class InvalidVendorError(InvalidInputError):
    pass


class InvalidDurationError(InvalidInputError):
    pass


class InvalidRecipientError(InvalidInputError):
    pass


class InvalidProofTokenError(InvalidInputError):
    pass


class InsufficientBalanceError(TreasuryFlowError):
    http_status = 422


class InsufficientAllowanceError(TreasuryFlowError):
    http_status = 422
