# Domain errors, mapped to HTTP responses in main.py

class StoreError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(StoreError):
    status_code = 404


class ConflictError(StoreError):
    status_code = 409
