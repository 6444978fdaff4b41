import asyncio
import time
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from application.dto import ChangePasswordDTO, LoginDTO, RegisterDTO
from application.services.auth_service import AuthApplicationService
from core.config import settings
from domain.common.exceptions import (
    PasswordErrorException,
    SessionInvalidException,
    TokenExpiredException,
    TokenInvalidException,
    UserAlreadyExistsException,
)
from domain.user.service import PasswordService


def _expiry(token: str) -> datetime:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)


@pytest.mark.asyncio
async def test_first_user_becomes_administrator(register):
    _, _, first = await register("alice")
    _, _, second = await register("bob")
    assert first.groups == ["administrator"]
    assert second.groups == ["user"]


@pytest.mark.asyncio
async def test_register_conflict_is_generic(auth_service, admin):
    with pytest.raises(UserAlreadyExistsException) as exc_info:
        await auth_service.register(RegisterDTO(
            username="admin", email="someone-else@example.com", password="password123"
        ))
    assert exc_info.value.message == "User with this username or email already exists"

    with pytest.raises(UserAlreadyExistsException):
        await auth_service.register(RegisterDTO(
            username="another", email="admin@example.com", password="password123"
        ))


@pytest.mark.asyncio
async def test_login_by_username_or_email(auth_service, admin):
    by_name = await auth_service.login(LoginDTO(login="admin", password="password123"))
    by_email = await auth_service.login(LoginDTO(login="admin@example.com", password="password123"))
    assert by_name.user.id == by_email.user.id
    assert by_name.token != by_email.token


@pytest.mark.asyncio
async def test_login_failures_share_one_error(auth_service, admin):
    with pytest.raises(PasswordErrorException) as unknown:
        await auth_service.login(LoginDTO(login="nobody", password="password123"))
    with pytest.raises(PasswordErrorException) as wrong:
        await auth_service.login(LoginDTO(login="admin", password="wrong-password"))
    assert unknown.value.message == wrong.value.message == "Invalid login or password"


@pytest.mark.asyncio
async def test_remember_me_extends_session(auth_service, admin):
    short = await auth_service.login(LoginDTO(login="admin", password="password123"))
    long = await auth_service.login(
        LoginDTO(login="admin", password="password123", remember_me=True)
    )
    assert _expiry(long.token) - _expiry(short.token) > timedelta(days=7)


@pytest.mark.asyncio
async def test_logout_revokes_only_current_session(auth_service, admin):
    token, identity, _ = admin
    other = await auth_service.login(LoginDTO(login="admin", password="password123"))

    await auth_service.logout(identity)

    with pytest.raises(SessionInvalidException):
        await auth_service.authenticate(token)
    assert (await auth_service.authenticate(other.token)).id == identity.id


@pytest.mark.asyncio
async def test_logout_all_revokes_every_session(auth_service, admin):
    token, identity, _ = admin
    other = await auth_service.login(LoginDTO(login="admin", password="password123"))

    result = await auth_service.logout_all(identity)

    assert result.revoked == 2
    for t in (token, other.token):
        with pytest.raises(SessionInvalidException):
            await auth_service.authenticate(t)


@pytest.mark.asyncio
async def test_change_password_keeps_only_current_session(auth_service, user_service, admin):
    token, identity, _ = admin
    other = await auth_service.login(LoginDTO(login="admin", password="password123"))

    result = await user_service.change_password(
        identity, ChangePasswordDTO(current_password="password123", new_password="new-password-1")
    )

    assert result.revoked_sessions == 1
    assert (await auth_service.authenticate(token)).session_id == identity.session_id
    with pytest.raises(SessionInvalidException):
        await auth_service.authenticate(other.token)
    with pytest.raises(PasswordErrorException):
        await auth_service.login(LoginDTO(login="admin", password="password123"))
    await auth_service.login(LoginDTO(login="admin", password="new-password-1"))


@pytest.mark.asyncio
async def test_list_sessions_marks_current(auth_service, admin):
    _, identity, _ = admin
    await auth_service.login(LoginDTO(login="admin", password="password123"))

    result = await auth_service.list_sessions(identity)

    assert len(result.sessions) == 2
    assert [s.current for s in result.sessions].count(True) == 1
    current = next(s for s in result.sessions if s.current)
    assert current.id == identity.session_id


@pytest.mark.asyncio
async def test_forged_and_expired_tokens_are_rejected(auth_service, admin):
    _, identity, _ = admin
    now = datetime.now(timezone.utc)

    forged = jwt.encode(
        {"sub": identity.id, "sid": identity.session_id, "exp": now + timedelta(hours=1)},
        "another-secret",
        algorithm="HS256",
    )
    with pytest.raises(TokenInvalidException):
        await auth_service.authenticate(forged)

    expired = jwt.encode(
        {"sub": identity.id, "sid": identity.session_id, "exp": now - timedelta(seconds=5)},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    with pytest.raises(TokenExpiredException):
        await auth_service.authenticate(expired)

    with pytest.raises(TokenInvalidException):
        await auth_service.authenticate("not-a-token")


@pytest.mark.asyncio
async def test_resigned_token_for_live_session_fails_hash_check(auth_service, admin):
    _, identity, _ = admin
    # 合法签名但与会话记录中的哈希不一致
    replay = jwt.encode(
        {
            "sub": identity.id,
            "sid": identity.session_id,
            "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            "extra": "claim",
        },
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    with pytest.raises(SessionInvalidException):
        await auth_service.authenticate(replay)


@pytest.mark.asyncio
async def test_email_is_case_insensitive(auth_service, admin):
    result = await auth_service.register(RegisterDTO(
        username="bob", email="Bob@Example.COM", password="password123"
    ))
    assert result.user.email == "bob@example.com"

    for login in ("Bob@Example.COM", "bob@example.com", "BOB@EXAMPLE.COM"):
        session = await auth_service.login(LoginDTO(login=login, password="password123"))
        assert session.user.id == result.user.id

    with pytest.raises(UserAlreadyExistsException):
        await auth_service.register(RegisterDTO(
            username="bobby", email="bob@EXAMPLE.com", password="password123"
        ))


@pytest.mark.asyncio
async def test_token_without_expiry_is_rejected(auth_service, admin):
    _, identity, _ = admin
    no_expiry = jwt.encode(
        {"sub": identity.id, "sid": identity.session_id},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    with pytest.raises(TokenInvalidException):
        await auth_service.authenticate(no_expiry)


@pytest.mark.asyncio
async def test_login_keeps_event_loop_responsive(uow_factory, admin):
    # 生产默认工作因子下，未知用户的哑哈希校验也不能卡住其他请求
    service = AuthApplicationService(uow_factory, password_service=PasswordService(rounds=12))
    gaps = []
    done = asyncio.Event()

    async def ticker():
        last = time.perf_counter()
        while not done.is_set():
            await asyncio.sleep(0.01)
            now = time.perf_counter()
            gaps.append(now - last)
            last = now

    task = asyncio.create_task(ticker())
    try:
        with pytest.raises(PasswordErrorException):
            await service.login(LoginDTO(login="nobody", password="password123"))
    finally:
        done.set()
        await task

    assert gaps
    assert max(gaps) < 0.15
