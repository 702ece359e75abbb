from datetime import datetime, timedelta, timezone

import jwt

from app.core.config import settings

TEST_PASSWORD = "password123"


def generate_test_jwt(user_id=1, email="testuser@example.com", role="client", expires_in=timedelta(hours=1)):
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": now + expires_in,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.JWT_ALGORITHM)


def auth_header_for(user) -> dict:
    """Authorization header for a User row."""
    token = generate_test_jwt(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}
