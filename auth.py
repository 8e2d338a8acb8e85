from typing import Optional


class AuthProvider:
    """Resolves the identity of the signed-in user."""

    async def get_current_user_identity(self) -> Optional[str]:
        raise NotImplementedError()


class SessionAuthProvider(AuthProvider):
    """In-process session holding at most one signed-in user id."""

    def __init__(self, user_id: Optional[str] = None) -> None:
        self.user_id = user_id

    def sign_in(self, user_id: str) -> None:
        if not user_id:
            raise ValueError("user id required")
        self.user_id = user_id

    def sign_out(self) -> None:
        self.user_id = None

    async def get_current_user_identity(self) -> Optional[str]:
        return self.user_id
