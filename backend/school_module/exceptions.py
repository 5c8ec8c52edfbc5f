class SchoolError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidCredentials(SchoolError):
    status_code = 401

    def __init__(self, detail: str = "Invalid username or password"):
        super().__init__(detail)


class NotAuthenticated(SchoolError):
    status_code = 401

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class PermissionDenied(SchoolError):
    status_code = 403


class ProtectedAccountError(SchoolError):
    status_code = 403


class ValidationError(SchoolError):
    status_code = 400


class NotFoundError(SchoolError):
    status_code = 404


class DuplicateUsernameError(SchoolError):
    status_code = 409

    def __init__(self, username: str):
        super().__init__(f"Username '{username}' already exists")
        self.username = username


class StorageError(SchoolError):
    status_code = 500

    def __init__(self, key: str, detail: str):
        super().__init__(detail)
        self.key = key


class StorageReadError(StorageError):
    pass


class StorageWriteError(StorageError):
    pass
