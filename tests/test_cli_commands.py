"""Tests for CLI command handlers."""

import pytest

from cli.commands import (
    format_file_size,
    handle_access,
    handle_delete,
    handle_info,
    handle_list,
    handle_login,
    handle_logout,
    handle_mkdir,
    handle_share,
    handle_star,
    handle_upload,
    handle_whoami,
)
from cli.constants import LOGIN_FAILED_TEXT, NOT_LOGGED_IN_TEXT, RETRY_TEXT
from cli.models import (
    AccessCommand,
    DeleteCommand,
    InfoCommand,
    ListCommand,
    LoginCommand,
    MkdirCommand,
    ShareCommand,
    StarCommand,
    UploadCommand,
)
from cli.repl import dispatch_command

from conftest import ALICE_SECRET


class TestLoginHandlers:
    @pytest.mark.asyncio
    async def test_handle_login(self, session):
        result = await handle_login(LoginCommand(account="alice", secret=ALICE_SECRET), session)

        assert "Logged in as alice" in result
        assert handle_whoami(session) == "alice"

    @pytest.mark.asyncio
    async def test_handle_login_generic_failure(self, session):
        unknown = await handle_login(LoginCommand(account="dave", secret="x"), session)
        wrong = await handle_login(LoginCommand(account="alice", secret="x"), session)

        assert unknown == wrong == LOGIN_FAILED_TEXT

    @pytest.mark.asyncio
    async def test_handle_logout(self, alice_session):
        assert await handle_logout(alice_session) == "Logged out alice"
        assert handle_whoami(alice_session) == NOT_LOGGED_IN_TEXT


class TestMutationHandlers:
    @pytest.mark.asyncio
    async def test_mkdir_and_list(self, alice_session):
        result = await handle_mkdir(MkdirCommand(name="docs"), alice_session)

        assert "Created folder docs" in result
        assert "docs/" in handle_list(ListCommand(), alice_session)

    @pytest.mark.asyncio
    async def test_upload_records_metadata(self, alice_session, sample_file):
        result = await handle_upload(UploadCommand(path=str(sample_file)), alice_session)

        entity = alice_session.files.list_all()[0]
        assert "Uploaded notes.txt" in result
        assert entity.mime_type == "text/plain"
        assert entity.size == sample_file.stat().st_size
        assert entity.content == "Sample content for testing"

    @pytest.mark.asyncio
    async def test_upload_missing_file(self, alice_session, tmp_path):
        result = await handle_upload(UploadCommand(path=str(tmp_path / "nope.txt")), alice_session)
        assert result.startswith("File not found")

    @pytest.mark.asyncio
    async def test_star_share_delete(self, alice_session):
        created = await alice_session.files.create_entity("notes.txt", "file")
        file_id = created.entity.id

        assert await handle_star(StarCommand(file_id=file_id), alice_session) == "Starred notes.txt"
        assert "Shared notes.txt with bob" == await handle_share(ShareCommand(file_id=file_id, account="bob"), alice_session)
        assert "shared:    bob" in handle_info(InfoCommand(file_id=file_id), alice_session)
        assert await handle_delete(DeleteCommand(file_id=file_id), alice_session) == "Deleted notes.txt"

    @pytest.mark.asyncio
    async def test_mutation_failure_is_generic(self, alice_session):
        assert await handle_star(StarCommand(file_id="missing"), alice_session) == RETRY_TEXT
        assert await handle_mkdir(MkdirCommand(name="  "), alice_session) == RETRY_TEXT

    @pytest.mark.asyncio
    async def test_mutation_while_logged_out(self, session):
        assert await handle_mkdir(MkdirCommand(name="docs"), session) == NOT_LOGGED_IN_TEXT

    @pytest.mark.asyncio
    async def test_sync_password_reaches_ledger(self, alice_session, ledger):
        await dispatch_command(MkdirCommand(name="docs", sync=True), alice_session, ALICE_SECRET)
        await alice_session.files.wait_for_pending()

        assert len(ledger.history("alice")) == 1


class TestAccessHandler:
    @pytest.mark.asyncio
    async def test_access_decisions(self, alice_session):
        created = await alice_session.files.create_entity("notes.txt", "file")
        file_id = created.entity.id
        await alice_session.files.share_entity(file_id, "bob")

        assert "allowed" in handle_access(AccessCommand(file_id=file_id, account="bob"), alice_session)
        assert handle_access(AccessCommand(file_id=file_id, account="carol"), alice_session).startswith("denied")
        assert handle_access(AccessCommand(file_id="missing", account="bob"), alice_session).startswith("Not found")


class TestFormatting:
    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1536, "1.50 KiB"),
        (5 * 1024 * 1024, "5.00 MiB"),
    ])
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected

    @pytest.mark.asyncio
    async def test_list_shows_folders_first_and_stars(self, alice_session):
        await alice_session.files.create_entity("a.txt", "file")
        folder = await alice_session.files.create_entity("z-folder", "folder")
        await alice_session.files.toggle_star(folder.entity.id)

        lines = handle_list(ListCommand(), alice_session).splitlines()

        assert lines[0].startswith("* z-folder/")
        assert "a.txt" in lines[1]

    @pytest.mark.asyncio
    async def test_empty_listing(self, alice_session):
        assert handle_list(ListCommand(), alice_session) == "(empty)"
