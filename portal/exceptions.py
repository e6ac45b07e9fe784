class UnauthorizedError(Exception):
    status_code = 401

    def __init__(self, message="Authentication required"):
        super().__init__(message)
        self.message = message


class ForbiddenError(Exception):
    status_code = 403

    def __init__(self, message="You do not have permission to perform this action"):
        super().__init__(message)
        self.message = message


class NotFoundError(Exception):
    status_code = 404

    def __init__(self, message="Not found"):
        super().__init__(message)
        self.message = message


class ValidationError(Exception):
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class MissingFieldsError(Exception):
    status_code = 400

    def __init__(self, fields):
        super().__init__("Missing required fields")
        self.message = "Missing required fields"
        self.fields = fields
