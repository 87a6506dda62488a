from typing import Any, Dict, Optional


class AuthResponse:
    def __init__(
        self,
        success: bool,
        user: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        self.success = success
        self.user = user
        self.error = error

    @classmethod
    def failed(cls, error: str) -> "AuthResponse":
        return cls(False, error=error)
