"""
JWT WebSocket Authentication Middleware for Django Channels.

Browsers cannot set an Authorization header on a WebSocket handshake, so the
access token is accepted from the `token` query parameter as well as from a
`Bearer` Authorization header (native clients).
"""
import jwt
import logging
from urllib.parse import parse_qs
from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.conf import settings
from django.contrib.auth import get_user_model

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(BaseMiddleware):
    """
    Authenticates WebSocket connections using a simplejwt access token.

    Wrap it inside AuthMiddlewareStack: when a token is present it replaces the
    session user, otherwise the session user is left untouched.
    """

    async def __call__(self, scope, receive, send):
        if scope['type'] == 'websocket':
            token = self.get_token(scope)
            if token:
                user = await self.get_user_from_jwt(token)
                if user is not None:
                    scope['user'] = user

        return await super().__call__(scope, receive, send)

    @staticmethod
    def get_token(scope):
        query = parse_qs(scope.get('query_string', b'').decode('utf-8'))
        if query.get('token'):
            return query['token'][0]

        headers = dict(scope.get('headers', []))
        auth_header = headers.get(b'authorization', b'').decode('utf-8')
        if auth_header.lower().startswith('bearer '):
            return auth_header.split(' ', 1)[1].strip()

        return None

    @database_sync_to_async
    def get_user_from_jwt(self, token):
        jwt_config = settings.SIMPLE_JWT
        try:
            payload = jwt.decode(
                token,
                jwt_config.get('SIGNING_KEY', settings.SECRET_KEY),
                algorithms=[jwt_config.get('ALGORITHM', 'HS256')],
                options={'verify_signature': True, 'verify_exp': True},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Expired JWT token in WebSocket connection")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token in WebSocket connection: {e}")
            return None

        user_id = payload.get(jwt_config.get('USER_ID_CLAIM', 'user_id'))
        if not user_id:
            logger.warning("JWT payload missing user_id")
            return None

        User = get_user_model()
        try:
            user = User.objects.get(id=user_id, is_active=True)
        except User.DoesNotExist:
            logger.warning(f"User {user_id} from JWT not found")
            return None

        logger.debug(f"WebSocket authenticated: user_id={user.id}")
        return user
