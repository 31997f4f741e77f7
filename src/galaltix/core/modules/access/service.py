from galaltix.core.core import Service
from galaltix.core.modules.session.models import AuthToken
from galaltix.core.modules.user.models import User
from galaltix.core.modules.user.service import ADMIN_USERNAME
from galaltix.errors import AccessDeniedError


class AccessService(Service):
    async def ensure_authenticated(self, auth_token: AuthToken) -> User:
        """Ensure the user is authenticated."""
        return await self.core.services.session.get_authenticated_user(auth_token)

    async def ensure_admin(self, auth_token: AuthToken) -> User:
        """Ensure the authenticated user is admin, raise AccessDeniedError if not."""
        user = await self.core.services.session.get_authenticated_user(auth_token)
        if user.username != ADMIN_USERNAME:
            raise AccessDeniedError("Admin privileges required")
        return user
