"""
Unit tests for OTPService and OTPCleanupTask.

Runs against a throwaway SQLite database; each operation is wrapped in the
caller-owned transaction the service expects.
"""

import asyncio
from datetime import timedelta

import pytest

from src.core.config import settings
from src.core.security import hash_otp
from src.models.mixins import utcnow
from src.repositories.otp_repository import OTPRepository
from src.services.otp_cleanup import OTPCleanupTask
from src.services.otp_service import OTPService

EMAIL = "ada@example.com"


async def _store(session, otp="123456", ttl_minutes=10):
    async with session.begin():
        await OTPService(session).store(EMAIL, otp, ttl_minutes)


async def _verify(session, otp):
    async with session.begin():
        return await OTPService(session).verify(EMAIL, otp)


async def _record(session):
    async with session.begin():
        return await OTPRepository(session).get_by_email(EMAIL)


class TestGenerate:
    """Test code generation."""

    def test_default_length(self):
        otp = OTPService.generate()

        assert len(otp) == settings.otp_length
        assert otp.isdigit()

    def test_first_digit_never_zero(self):
        for _ in range(200):
            assert OTPService.generate(4)[0] != "0"

    @pytest.mark.parametrize("length", [4, 6, 8])
    def test_custom_length_in_range(self, length):
        value = int(OTPService.generate(length))

        assert 10 ** (length - 1) <= value <= 10**length - 1


class TestStore:
    """Test storing codes."""

    @pytest.mark.asyncio
    async def test_store_persists_hash_only(self, db_session):
        await _store(db_session, "123456")

        record = await _record(db_session)

        assert record.otp_hash == hash_otp("123456")
        assert "123456" not in record.otp_hash
        assert record.attempts == 0

    @pytest.mark.asyncio
    async def test_store_replaces_previous_code(self, db_session):
        await _store(db_session, "111111")
        assert await _verify(db_session, "999999") is False

        await _store(db_session, "222222")

        record = await _record(db_session)
        assert record.attempts == 0
        assert await _verify(db_session, "111111") is False

    @pytest.mark.asyncio
    async def test_concurrent_stores_leave_one_record(self, session_factory):
        async def issue(otp):
            async with session_factory() as session:
                await _store(session, otp)

        await asyncio.gather(issue("111111"), issue("222222"), issue("333333"))

        async with session_factory() as session:
            record = await _record(session)
        assert record.otp_hash in {hash_otp(otp) for otp in ("111111", "222222", "333333")}
        assert record.attempts == 0
        assert await _verify(db_session, "222222") is True


class TestVerify:
    """Test verification rules."""

    @pytest.mark.asyncio
    async def test_correct_code_is_consumed(self, db_session):
        await _store(db_session, "123456")

        assert await _verify(db_session, "123456") is True
        assert await _record(db_session) is None
        assert await _verify(db_session, "123456") is False

    @pytest.mark.asyncio
    async def test_wrong_code_counts_attempt(self, db_session):
        await _store(db_session, "123456")

        assert await _verify(db_session, "000000") is False

        record = await _record(db_session)
        assert record.attempts == 1

    @pytest.mark.asyncio
    async def test_missing_code_fails(self, db_session):
        assert await _verify(db_session, "123456") is False

    @pytest.mark.asyncio
    async def test_expired_code_fails_without_counting(self, db_session):
        async with db_session.begin():
            await OTPRepository(db_session).upsert(
                EMAIL, hash_otp("123456"), utcnow() - timedelta(seconds=1)
            )

        assert await _verify(db_session, "123456") is False

        record = await _record(db_session)
        assert record.attempts == 0

    @pytest.mark.asyncio
    async def test_attempt_cap_blocks_correct_code(self, db_session):
        await _store(db_session, "123456")

        for _ in range(settings.otp_max_attempts):
            assert await _verify(db_session, "000000") is False

        assert await _verify(db_session, "123456") is False
        record = await _record(db_session)
        assert record.attempts == settings.otp_max_attempts

    @pytest.mark.asyncio
    async def test_concurrent_wrong_codes_respect_cap(self, session_factory):
        async with session_factory() as session:
            await _store(session, "123456")

        async def guess():
            async with session_factory() as session:
                return await _verify(session, "000000")

        results = await asyncio.gather(*(guess() for _ in range(settings.otp_max_attempts + 3)))

        assert not any(results)
        async with session_factory() as session:
            record = await _record(session)
        assert record.attempts == settings.otp_max_attempts

    @pytest.mark.asyncio
    async def test_correct_code_on_last_allowed_attempt(self, db_session):
        await _store(db_session, "123456")

        for _ in range(settings.otp_max_attempts - 1):
            await _verify(db_session, "000000")

        assert await _verify(db_session, "123456") is True


class TestCleanup:
    """Test sweeping expired codes."""

    @pytest.mark.asyncio
    async def test_cleanup_removes_only_expired(self, db_session):
        async with db_session.begin():
            repo = OTPRepository(db_session)
            await repo.upsert("old@example.com", hash_otp("1"), utcnow() - timedelta(minutes=1))
            await repo.upsert("new@example.com", hash_otp("2"), utcnow() + timedelta(minutes=5))

        async with db_session.begin():
            deleted = await OTPService(db_session).cleanup_expired()

        assert deleted == 1
        async with db_session.begin():
            repo = OTPRepository(db_session)
            assert await repo.get_by_email("old@example.com") is None
            assert await repo.get_by_email("new@example.com") is not None

    @pytest.mark.asyncio
    async def test_cleanup_task_run_once(self, session_factory):
        async with session_factory() as session:
            async with session.begin():
                await OTPRepository(session).upsert(
                    EMAIL, hash_otp("1"), utcnow() - timedelta(minutes=1)
                )

        task = OTPCleanupTask(session_factory, interval_seconds=60)

        assert await task.run_once() == 1
        assert await task.run_once() == 0

    @pytest.mark.asyncio
    async def test_cleanup_task_start_and_stop(self, session_factory):
        task = OTPCleanupTask(session_factory, interval_seconds=60)

        task.start()
        assert task.running is True
        await asyncio.sleep(0)

        await task.stop()
        assert task.running is False

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, session_factory):
        task = OTPCleanupTask(session_factory, interval_seconds=60)

        await task.stop()

        assert task.running is False

    @pytest.mark.asyncio
    async def test_failed_sweep_keeps_loop_running(self, session_factory, monkeypatch):
        task = OTPCleanupTask(session_factory, interval_seconds=0)
        calls = []

        async def failing_sweep():
            calls.append(1)
            raise RuntimeError("sweep exploded")

        monkeypatch.setattr(task, "run_once", failing_sweep)

        task.start()
        for _ in range(5):
            await asyncio.sleep(0)

        assert len(calls) >= 2
        assert task.running is True

        await task.stop()
        assert task.running is False

    @pytest.mark.asyncio
    async def test_stop_after_task_crashed(self, session_factory, monkeypatch):
        task = OTPCleanupTask(session_factory, interval_seconds=60)

        async def crashed_loop():
            raise RuntimeError("loop exploded")

        monkeypatch.setattr(task, "_run", crashed_loop)

        task.start()
        await asyncio.sleep(0)
        assert task.running is False

        await task.stop()
