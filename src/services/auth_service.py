"""
Authentication service for the OTP-based account workflow.

This module provides:
- User registration with emailed verification code
- Email verification (OTP) with session token issuance
- Verification code resend
- User login with failed-attempt suspension
- Password reset via emailed code
- Password change for authenticated users

Every operation runs its state changes in one ``session.begin()`` scope and
writes audit entries only after that scope has committed.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.security import (
    create_access_token,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from src.exceptions import (
    AccountInactiveError,
    AccountSuspendedError,
    AlreadyVerifiedError,
    AppException,
    DuplicateEmailError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidOrExpiredOTPError,
    NotFoundError,
    NotificationError,
    RegistrationFailedError,
)
from src.models.enums import AccountStatus, AuditAction, AuditStatus, UserRole
from src.models.user import User, UserPermission
from src.repositories.user_repository import UserRepository
from src.services.audit_service import AuditService, RequestContext
from src.services.email_service import NotificationService
from src.services.otp_service import OTPService
from src.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


@dataclass
class RegistrationResult:
    """Outcome of a registration. ``otp`` is only set when exposure is enabled."""

    user: User
    otp: str | None = None


@dataclass
class ResendResult:
    """Outcome of a code resend. ``otp`` is only set when exposure is enabled."""

    otp: str | None = None


@dataclass
class AuthResult:
    """Session issued by login or email verification."""

    access_token: str
    expires_in: int
    user: User
    permissions: UserPermission


class AuthService:
    """
    Service class for authentication operations.

    This service handles:
    - Registration and email verification
    - Code resend
    - Login and token generation
    - Password reset and change

    Issued codes are echoed back to the caller only when constructed with
    ``expose_otp_in_response=True`` (development setups).
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: NotificationService,
        *,
        expose_otp_in_response: bool = False,
    ):
        """
        Initialize AuthService.

        Args:
            session: Async database session
            notifier: Sends verification and reset emails
            expose_otp_in_response: Return issued codes to the caller
        """
        self.session = session
        self.notifier = notifier
        self.expose_otp_in_response = expose_otp_in_response
        self.user_repo = UserRepository(session)
        self.otp_service = OTPService(session)
        self.permission_service = PermissionService(session)
        self.audit_service = AuditService(session)

    # -------------------------------------------------------------------------
    # Registration and verification
    # -------------------------------------------------------------------------

    async def register(
        self,
        email: str,
        name: str,
        password: str,
        surname: str | None = None,
        context: RequestContext | None = None,
    ) -> RegistrationResult:
        """
        Register a new, unverified user and email them a verification code.

        This method, in one transaction:
        1. Rejects emails that are already registered
        2. Creates the user (inactive, unverified) with default permissions
        3. Stores a fresh verification code
        4. Sends the code by email

        Any failure rolls the whole registration back.

        Args:
            email: Email address (stored as given)
            name: Given name
            password: Plain text password
            surname: Optional family name
            context: Request context for the audit entry

        Returns:
            RegistrationResult with the created user

        Raises:
            DuplicateEmailError: If the email is already registered
            RegistrationFailedError: If storage or email delivery failed

        Example:
            result = await auth_service.register(
                email="ada@example.com",
                name="Ada",
                password="pw123456",
            )
        """
        otp = OTPService.generate()

        try:
            async with self.session.begin():
                if await self.user_repo.email_exists(email):
                    logger.warning(f"Registration attempted with existing email: {email}")
                    raise DuplicateEmailError()

                user = await self.user_repo.add(
                    User(
                        email=email,
                        name=name,
                        surname=surname,
                        password_hash=hash_password(password),
                        role=UserRole.regular,
                        email_verified=False,
                        account_status=AccountStatus.inactive,
                        login_attempts=0,
                        permissions=UserPermission(),
                    )
                )
                await self.otp_service.store(email, otp, settings.otp_expire_minutes)
                await self.notifier.send_verification_code(email, name, otp)
        except DuplicateEmailError:
            raise
        except IntegrityError as e:
            logger.warning(f"Registration lost a race for email {email}: {e}")
            raise DuplicateEmailError() from e
        except (SQLAlchemyError, NotificationError) as e:
            logger.error(f"Registration failed for {email}: {e}", exc_info=True)
            raise RegistrationFailedError() from e

        logger.info(f"User registered successfully: {user.id} ({user.email})")

        await self.audit_service.record(
            user_id=user.id,
            action=AuditAction.REGISTER,
            entity_type="user",
            entity_id=user.id,
            description="User registered",
            new_values={"name": user.name, "email": user.email, "role": user.role.value},
            context=context,
        )

        return RegistrationResult(
            user=user,
            otp=otp if self.expose_otp_in_response else None,
        )

    async def verify_email(
        self,
        email: str,
        otp: str,
        context: RequestContext | None = None,
    ) -> AuthResult:
        """
        Verify a registration code, activate the account and start a session.

        A wrong code still counts against the code's attempt limit.

        Args:
            email: Address the code was sent to
            otp: Code entered by the user
            context: Request context for the audit entry

        Returns:
            AuthResult with access token, user and permissions

        Raises:
            InvalidOrExpiredOTPError: If the code is wrong, expired, exhausted
                or was never issued
            AccountSuspendedError: If the already-verified account is suspended
            AccountInactiveError: If the already-verified account is inactive
        """
        async with self.session.begin():
            verified = await self.otp_service.verify(email, otp)
            if verified:
                user = await self.user_repo.get_by_email(email)
                if user is None:
                    raise InvalidOrExpiredOTPError()

                was_verified = user.email_verified
                if not was_verified:
                    await self.user_repo.mark_email_verified(user)
                else:
                    self._ensure_active(user)
                permissions = await self.permission_service.resolve(user)

        if not verified:
            raise InvalidOrExpiredOTPError()

        logger.info(f"Email verified for user {user.id} ({user.email})")

        if not was_verified:
            await self.audit_service.record(
                user_id=user.id,
                action=AuditAction.EMAIL_VERIFIED,
                entity_type="user",
                entity_id=user.id,
                description="Email address verified",
                old_values={"email_verified": False},
                new_values={"email_verified": True},
                context=context,
            )

        return self._issue_session(user, permissions)

    async def resend_otp(
        self,
        email: str,
        context: RequestContext | None = None,
    ) -> ResendResult:
        """
        Issue a new verification code for an unverified account.

        The new code replaces the previous one and is committed before the
        email is sent, so it stays valid even if delivery fails.

        Args:
            email: Address of the account
            context: Request context for the audit entry

        Returns:
            ResendResult

        Raises:
            NotFoundError: If no account uses this email
            AlreadyVerifiedError: If the email is already verified
            NotificationError: If the email could not be sent
        """
        otp = OTPService.generate()

        async with self.session.begin():
            user = await self.user_repo.get_by_email(email)
            if user is None:
                raise NotFoundError("User")
            if user.email_verified:
                raise AlreadyVerifiedError()

            await self.otp_service.store(email, otp, settings.otp_expire_minutes)

        await self.notifier.send_verification_code(email, user.name, otp)

        logger.info(f"Verification code resent to user {user.id}")

        await self.audit_service.record(
            user_id=user.id,
            action=AuditAction.OTP_RESENT,
            entity_type="user",
            entity_id=user.id,
            description="Verification code resent",
            context=context,
        )

        return ResendResult(otp=otp if self.expose_otp_in_response else None)

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    async def login(
        self,
        email: str,
        password: str,
        context: RequestContext | None = None,
    ) -> AuthResult:
        """
        Authenticate user and issue a session token.

        Checks, in order: account exists, email verified, not suspended,
        not inactive, password matches. A wrong password increments the
        failed-attempt counter; reaching ``max_login_attempts`` suspends the
        account. Every failure is audit-logged before it is raised.

        Args:
            email: User's email address
            password: User's password (plain text)
            context: Request context for the audit entries

        Returns:
            AuthResult with access token, user and permissions

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            EmailNotVerifiedError: Email not yet verified
            AccountSuspendedError: Account suspended
            AccountInactiveError: Account inactive
        """
        error: AppException | None = None
        user: User | None = None
        suspended_now = False

        async with self.session.begin():
            user = await self.user_repo.get_by_email(email)

            if user is None:
                verify_password(password, dummy_password_hash())
                logger.warning(f"Login failed: user not found with email {email}")
                error = InvalidCredentialsError()
            elif not user.email_verified:
                error = EmailNotVerifiedError()
            elif user.account_status == AccountStatus.suspended:
                error = AccountSuspendedError()
            elif user.account_status == AccountStatus.inactive:
                error = AccountInactiveError()
            elif not verify_password(password, user.password_hash):
                attempts = await self.user_repo.increment_login_attempts(user.id)
                logger.warning(
                    f"Login failed: invalid password for user {user.id} "
                    f"(attempt {attempts}/{settings.max_login_attempts})"
                )
                if attempts >= settings.max_login_attempts:
                    await self.user_repo.set_account_status(user, AccountStatus.suspended)
                    suspended_now = True
                    logger.warning(f"User {user.id} suspended after {attempts} failed logins")
                error = InvalidCredentialsError()
            else:
                await self.user_repo.record_successful_login(user)
                permissions = await self.permission_service.resolve(user)

        if error is not None:
            if suspended_now:
                await self.audit_service.record(
                    user_id=user.id,
                    action=AuditAction.ACCOUNT_SUSPENDED,
                    entity_type="user",
                    entity_id=user.id,
                    description="Account suspended after repeated failed logins",
                    old_values={"account_status": AccountStatus.active.value},
                    new_values={"account_status": AccountStatus.suspended.value},
                    context=context,
                )
            await self.audit_service.record(
                user_id=user.id if user else None,
                action=AuditAction.LOGIN_FAILED,
                entity_type="user",
                entity_id=user.id if user else None,
                description="Login attempt failed",
                context=context,
                status=AuditStatus.FAILURE,
                error_message=error.message,
                extra_metadata={"email": email, "reason": error.error_code},
            )
            raise error

        logger.info(f"User logged in successfully: {user.id} ({user.email})")

        await self.audit_service.record(
            user_id=user.id,
            action=AuditAction.LOGIN,
            entity_type="user",
            entity_id=user.id,
            description="User logged in successfully",
            context=context,
        )

        return self._issue_session(user, permissions)

    # -------------------------------------------------------------------------
    # Passwords
    # -------------------------------------------------------------------------

    async def forgot_password(
        self,
        email: str,
        context: RequestContext | None = None,
    ) -> None:
        """
        Email a password reset code if the account exists.

        Completes the same way whether or not the email is registered, and
        never surfaces delivery failures, so callers cannot tell which accounts exist.

        Args:
            email: Address of the account
            context: Request context for the audit entry
        """
        otp = OTPService.generate()

        async with self.session.begin():
            user = await self.user_repo.get_by_email(email)
            if user is not None:
                await self.otp_service.store(
                    email, otp, settings.password_reset_otp_expire_minutes
                )

        if user is None:
            logger.info(f"Password reset requested for unknown email {email}")
            return

        try:
            await self.notifier.send_password_reset_code(email, user.name, otp)
        except NotificationError:
            logger.error(f"Password reset email to user {user.id} could not be sent")

        await self.audit_service.record(
            user_id=user.id,
            action=AuditAction.PASSWORD_RESET_REQUESTED,
            entity_type="user",
            entity_id=user.id,
            description="Password reset requested",
            context=context,
        )

    async def reset_password(
        self,
        email: str,
        otp: str,
        new_password: str,
        context: RequestContext | None = None,
    ) -> None:
        """
        Set a new password using an emailed reset code.

        The code is consumed on success. Does not start a session.

        Args:
            email: Address of the account
            otp: Reset code entered by the user
            new_password: New plain text password
            context: Request context for the audit entry

        Raises:
            InvalidOrExpiredOTPError: If the code is wrong, expired, exhausted
                or was never issued
        """
        async with self.session.begin():
            verified = await self.otp_service.verify(email, otp)
            if verified:
                user = await self.user_repo.get_by_email(email)
                if user is None:
                    raise InvalidOrExpiredOTPError()
                await self.user_repo.set_password_hash(user, hash_password(new_password))

        if not verified:
            raise InvalidOrExpiredOTPError()

        logger.info(f"Password reset for user {user.id}")

        await self.audit_service.record(
            user_id=user.id,
            action=AuditAction.PASSWORD_RESET,
            entity_type="user",
            entity_id=user.id,
            description="Password reset with emailed code",
            context=context,
        )

    async def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        context: RequestContext | None = None,
    ) -> None:
        """
        Change an authenticated user's password.

        Args:
            user: Authenticated user
            current_password: Current password (for verification)
            new_password: New plain text password
            context: Request context for the audit entry

        Raises:
            InvalidCredentialsError: If current password is incorrect
        """
        if not verify_password(current_password, user.password_hash):
            logger.warning(
                f"Password change failed: invalid current password for user {user.id}"
            )
            raise InvalidCredentialsError("Current password is incorrect")

        async with self.session.begin():
            await self.user_repo.set_password_hash(user, hash_password(new_password))

        logger.info(f"Password changed for user {user.id}")

        await self.audit_service.record(
            user_id=user.id,
            action=AuditAction.PASSWORD_CHANGE,
            entity_type="user",
            entity_id=user.id,
            description="Password changed",
            context=context,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _ensure_active(user: User) -> None:
        if user.account_status == AccountStatus.suspended:
            raise AccountSuspendedError()
        if user.account_status == AccountStatus.inactive:
            raise AccountInactiveError()

    @staticmethod
    def _issue_session(user: User, permissions: UserPermission) -> AuthResult:
        access_token = create_access_token(
            data={
                "sub": str(user.id),
                "email": user.email,
                "role": user.role.value,
            }
        )
        return AuthResult(
            access_token=access_token,
            expires_in=settings.access_token_expire_minutes * 60,
            user=user,
            permissions=permissions,
        )
