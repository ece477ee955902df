"""
Domain errors raised by the service layer.

Views translate them into JSON responses of the form
{"error": <kind>, "detail": <message>} with the class's HTTP status.
"""


class WorkshopError(Exception):
    kind = 'WorkshopError'
    status = 400

    def __init__(self, message=''):
        super().__init__(message)
        self.message = message or self.kind

    def as_dict(self):
        return {'error': self.kind, 'detail': self.message}


class NotFound(WorkshopError):
    kind = 'NotFound'
    status = 404


class ValidationError(WorkshopError):
    kind = 'ValidationError'
    status = 400


class InvalidTransition(WorkshopError):
    kind = 'InvalidTransition'
    status = 409


class InsufficientStock(WorkshopError):
    kind = 'InsufficientStock'
    status = 409


class AlreadyInvoiced(WorkshopError):
    kind = 'AlreadyInvoiced'
    status = 409


class PartInUse(WorkshopError):
    kind = 'PartInUse'
    status = 409


class OverPayment(WorkshopError):
    kind = 'OverPayment'
    status = 400


class InvalidCredential(WorkshopError):
    kind = 'InvalidCredential'
    status = 401


class NoFundsAvailable(WorkshopError):
    kind = 'NoFundsAvailable'
    status = 400
