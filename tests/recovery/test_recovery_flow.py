"""Tests for the password recovery flow."""

import httpx
import pytest

from tiger_cli.connection.details import ConnectionDetails
from tiger_cli.core.errors import (
    APIError,
    AuthenticationRejectedError,
    RecoveryUnavailableError,
)
from tiger_cli.recovery.flow import (
    PasswordRecoveryFlow,
    RecoveryOverride,
    RecoveryStatus,
)
from tiger_cli.recovery.prompts import RecoveryAction, RecoveryPrompter, menu_options
from tiger_cli.secrets.interface import ServiceIdentity
from tiger_cli.secrets.keyring_storage import KeyringStorage


class AuthFailed(Exception):
    sqlstate = "28P01"


class ScriptedPrompter(RecoveryPrompter):
    """Replays canned menu choices and password entries."""

    def __init__(self, actions=(), passwords=()):
        self.actions = list(actions)
        self.passwords = list(passwords)
        self.menus = []
        self.prompts = []

    def choose_action(self, can_reset):
        self.menus.append(can_reset)
        return self.actions.pop(0)

    def read_password(self, prompt):
        self.prompts.append(prompt)
        if not self.passwords:
            raise EOFError
        return self.passwords.pop(0)


class FakeDatabase:
    """Accepts exactly one password; counts connection attempts."""

    def __init__(self, password):
        self.password = password
        self.attempts = []

    async def __call__(self, details, password):
        self.attempts.append(password)
        if password != self.password:
            raise AuthFailed(f'password authentication failed for user "{details.role}"')


class FakeRotator:
    def __init__(self, database, error=None):
        self.database = database
        self.error = error
        self.calls = []

    async def __call__(self, identity, password):
        self.calls.append((identity.service_id, password))
        if self.error is not None:
            raise self.error
        self.database.password = password


@pytest.fixture
def identity(service):
    return ServiceIdentity.from_service(service, "tsdbadmin")


@pytest.fixture
def details():
    return ConnectionDetails(role="tsdbadmin", host="db.example.com")


@pytest.fixture
def storage(memory_keyring):
    return KeyringStorage()


def make_flow(storage, database, prompter, interactive=True, rotator=None):
    return PasswordRecoveryFlow(
        storage=storage,
        tester=database,
        prompter=prompter,
        is_interactive=lambda: interactive,
        rotator=rotator,
    )


@pytest.mark.asyncio
async def test_working_stored_password_skips_prompts(storage, identity, details):
    storage.save(identity, "good")
    database = FakeDatabase("good")
    prompter = ScriptedPrompter()

    result = await make_flow(storage, database, prompter).run(details, identity)

    assert result.status is RecoveryStatus.CONNECTED
    assert result.password == "good"
    assert prompter.menus == []
    assert database.attempts == ["good"]


@pytest.mark.asyncio
async def test_no_terminal_fails_fast(storage, identity, details):
    storage.save(identity, "stale")
    prompter = ScriptedPrompter()

    with pytest.raises(RecoveryUnavailableError) as excinfo:
        await make_flow(storage, FakeDatabase("good"), prompter, interactive=False).run(
            details, identity
        )

    assert excinfo.value.exit_code == 4
    assert prompter.menus == []
    assert "stale" not in str(excinfo.value)


@pytest.mark.asyncio
async def test_rotate_persists_new_password(storage, identity, details):
    storage.save(identity, "stale")
    database = FakeDatabase("good")
    rotator = FakeRotator(database)
    prompter = ScriptedPrompter(
        actions=[RecoveryAction.RESET_PASSWORD], passwords=["newpass"]
    )

    result = await make_flow(storage, database, prompter, rotator=rotator).run(
        details, identity
    )

    assert result.status is RecoveryStatus.CONNECTED
    assert result.password == "newpass"
    assert rotator.calls == [("svc-12345", "newpass")]
    assert database.attempts == ["stale", "newpass"]
    assert storage.get(identity) == "newpass"
    assert result.storage_result.success


@pytest.mark.asyncio
async def test_rotated_password_is_kept_when_connection_then_fails(storage, identity, details):
    storage.save(identity, "stale")
    database = FakeDatabase("good")
    rotator = FakeRotator(database)
    prompter = ScriptedPrompter(
        actions=[RecoveryAction.RESET_PASSWORD], passwords=["newpass"]
    )

    async def tester(details, password):
        if password == "newpass":
            raise OSError("connection reset by peer")
        await database(details, password)

    with pytest.raises(OSError):
        await make_flow(storage, tester, prompter, rotator=rotator).run(details, identity)

    assert database.password == "newpass"
    assert storage.get(identity) == "newpass"


@pytest.mark.asyncio
async def test_rotate_with_empty_input_generates_password(storage, identity, details):
    database = FakeDatabase("good")
    rotator = FakeRotator(database)
    prompter = ScriptedPrompter(actions=[RecoveryAction.RESET_PASSWORD], passwords=[""])

    result = await make_flow(storage, database, prompter, rotator=rotator).run(
        details, identity
    )

    generated = rotator.calls[0][1]
    assert len(generated) == 32
    assert result.password == generated
    assert storage.get(identity) == generated


@pytest.mark.asyncio
async def test_rotation_failure_returns_to_menu(storage, identity, details):
    database = FakeDatabase("good")
    rotator = FakeRotator(database, error=APIError("forbidden", status_code=403))
    prompter = ScriptedPrompter(
        actions=[RecoveryAction.RESET_PASSWORD, RecoveryAction.EXIT], passwords=["x"]
    )

    result = await make_flow(storage, database, prompter, rotator=rotator).run(
        details, identity
    )

    assert result.declined
    assert len(prompter.menus) == 2


@pytest.mark.asyncio
async def test_rotation_network_error_returns_to_menu(storage, identity, details):
    database = FakeDatabase("good")
    rotator = FakeRotator(database, error=httpx.ConnectError("unreachable"))
    prompter = ScriptedPrompter(
        actions=[RecoveryAction.RESET_PASSWORD, RecoveryAction.ENTER_PASSWORD],
        passwords=["x", "good"],
    )

    result = await make_flow(storage, database, prompter, rotator=rotator).run(
        details, identity
    )

    assert result.password == "good"


@pytest.mark.asyncio
async def test_enter_password_reprompts_until_correct(storage, identity, details):
    database = FakeDatabase("good")
    prompter = ScriptedPrompter(
        actions=[RecoveryAction.ENTER_PASSWORD, RecoveryAction.ENTER_PASSWORD],
        passwords=["", "wrong", "good"],
    )

    result = await make_flow(storage, database, prompter).run(details, identity)

    assert result.password == "good"
    # Empty input is asked again without a connection attempt
    assert database.attempts == [None, "wrong", "good"]
    assert len(prompter.prompts) == 3
    assert storage.get(identity) == "good"


@pytest.mark.asyncio
async def test_exit_declines_without_saving(storage, identity, details):
    storage.save(identity, "stale")
    prompter = ScriptedPrompter(actions=[RecoveryAction.EXIT])

    result = await make_flow(storage, FakeDatabase("good"), prompter).run(details, identity)

    assert result.declined
    assert storage.get(identity) == "stale"


@pytest.mark.asyncio
async def test_closed_input_declines(storage, identity, details):
    prompter = ScriptedPrompter(actions=[RecoveryAction.ENTER_PASSWORD])

    result = await make_flow(storage, FakeDatabase("good"), prompter).run(details, identity)

    assert result.declined


@pytest.mark.asyncio
async def test_reset_only_offered_for_admin_role(storage, service, details):
    identity = ServiceIdentity.from_service(service, "reader")
    database = FakeDatabase("good")
    prompter = ScriptedPrompter(actions=[RecoveryAction.EXIT])

    await make_flow(storage, database, prompter, rotator=FakeRotator(database)).run(
        details, identity
    )

    assert prompter.menus == [False]


@pytest.mark.asyncio
async def test_other_errors_propagate(storage, identity, details):
    async def unreachable(details, password):
        raise ConnectionRefusedError("connection refused")

    prompter = ScriptedPrompter()

    with pytest.raises(ConnectionRefusedError):
        await make_flow(storage, unreachable, prompter).run(details, identity)

    assert prompter.menus == []


@pytest.mark.asyncio
async def test_override_password_is_tested_and_saved(storage, identity, details):
    storage.save(identity, "stale")
    database = FakeDatabase("good")

    result = await make_flow(storage, database, ScriptedPrompter()).run(
        details, identity, RecoveryOverride(password="good")
    )

    assert database.attempts == ["good"]
    assert result.password == "good"
    assert storage.get(identity) == "good"


@pytest.mark.asyncio
async def test_rejected_override_password_fails(storage, identity, details):
    prompter = ScriptedPrompter()

    with pytest.raises(AuthenticationRejectedError) as excinfo:
        await make_flow(storage, FakeDatabase("good"), prompter).run(
            details, identity, RecoveryOverride(password="wrong")
        )

    assert prompter.menus == []
    assert "wrong" not in str(excinfo.value)


@pytest.mark.asyncio
async def test_override_reset_rotates_without_prompting(storage, identity, details):
    database = FakeDatabase("good")
    rotator = FakeRotator(database)
    prompter = ScriptedPrompter()

    result = await make_flow(storage, database, prompter, interactive=False, rotator=rotator).run(
        details, identity, RecoveryOverride(reset_password=True)
    )

    assert len(rotator.calls) == 1
    assert storage.get(identity) == result.password
    assert prompter.menus == []


@pytest.mark.asyncio
async def test_storage_failure_after_connect_is_not_fatal(broken_keyring, identity, details):
    prompter = ScriptedPrompter(actions=[RecoveryAction.ENTER_PASSWORD], passwords=["good"])

    result = await make_flow(KeyringStorage(), FakeDatabase("good"), prompter).run(
        details, identity
    )

    assert result.status is RecoveryStatus.CONNECTED
    assert not result.storage_result.success


def test_override_directives_are_exclusive():
    with pytest.raises(ValueError):
        RecoveryOverride(password="x", reset_password=True)


def test_menu_options():
    assert menu_options(True) == [
        ("1", RecoveryAction.ENTER_PASSWORD),
        ("2", RecoveryAction.RESET_PASSWORD),
        ("3", RecoveryAction.EXIT),
    ]
    assert menu_options(False) == [
        ("1", RecoveryAction.ENTER_PASSWORD),
        ("2", RecoveryAction.EXIT),
    ]
