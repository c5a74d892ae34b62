"""
Auth Service - registration, email verification and login
"""

import secrets
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from society.core.logging_config import logger
from society.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    generate_verification_code,
)
from society.core.exceptions import (
    DuplicateEmailError,
    AdminExistsError,
    InvalidVerificationCodeError,
    InvalidCredentialsError,
    EmailUnverifiedError,
    AccountDeactivatedError,
)
from society.models.user import User, UserRole
from society.models.flat import Flat
from society.schemas.auth import RegisterRequest, ResidentIdentity
from society.services.email_service import email_service
from society.services.notifier import notifier
from society.services.occupancy_service import occupancy_service


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Account lifecycle: register, verify, login"""

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def get_admin(self, db: AsyncSession) -> Optional[User]:
        result = await db.execute(select(User).where(User.role == UserRole.ADMIN).limit(1))
        return result.scalar_one_or_none()

    async def register(self, db: AsyncSession, data: RegisterRequest) -> User:
        """
        Create an unverified account and send its verification code.

        Residents are linked to their flat in the same commit; the flat is
        marked permanent with the resident's name and phone. The email goes
        out after the commit and a failed send does not fail registration.
        """
        email = normalize_email(data.email)

        if await self.get_by_email(db, email):
            logger.log_auth_event(event="register", success=False, user_email=email, reason="Email already registered")
            raise DuplicateEmailError(email)

        identity = data.identity()

        flat: Optional[Flat] = None
        if isinstance(identity, ResidentIdentity):
            flat = await occupancy_service.reserve_unit(db, identity.wing, identity.flat_no)
        elif await self.get_admin(db):
            logger.log_auth_event(event="register", success=False, user_email=email, reason="Admin already exists")
            raise AdminExistsError()

        code = generate_verification_code()
        user = User(
            name=data.name,
            email=email,
            hashed_password=get_password_hash(data.password),
            phone=data.phone,
            role=identity.role,
            is_verified=False,
            verification_code=code,
            is_active=True,
        )
        if flat is not None:
            user.wing = flat.wing
            user.flat_no = flat.flat_no
        db.add(user)

        try:
            # flush first so the flat can reference the new user id
            await db.flush()
            if flat is not None:
                flat.occupy(user)
                user.flat_id = flat.id
            await db.commit()
        except IntegrityError:
            await db.rollback()
            # lost a race with a concurrent registration
            if await self.get_by_email(db, email):
                raise DuplicateEmailError(email)
            if identity.role == UserRole.ADMIN:
                raise AdminExistsError()
            raise

        logger.log_auth_event(
            event="register",
            success=True,
            user_email=email,
            user_role=identity.role.value,
        )
        if flat is not None:
            logger.log_occupancy_event("resident_registered", flat.wing, flat.flat_no, user_id=user.id)

        notifier.dispatch(
            email_service.send_verification_email(user.email, user.name, code),
            f"verification email to {user.email}",
        )
        return user

    async def verify_email(self, db: AsyncSession, email: str, code: str) -> User:
        """
        Match the stored code; the code is single use.

        An unknown address fails like a wrong code.
        """
        user = await self.get_by_email(db, email)
        if not user:
            logger.log_auth_event(event="verify_email", success=False, user_email=normalize_email(email), reason="Unknown email")
            raise InvalidVerificationCodeError()

        if not user.verification_code or not secrets.compare_digest(
            user.verification_code.encode(), code.strip().encode()
        ):
            logger.log_auth_event(event="verify_email", success=False, user_email=user.email, reason="Invalid code")
            raise InvalidVerificationCodeError()

        user.is_verified = True
        user.verification_code = None
        await db.commit()

        logger.log_auth_event(event="verify_email", success=True, user_email=user.email)
        return user

    async def resend_verification(self, db: AsyncSession, email: str) -> bool:
        """
        Issue a fresh code to an unverified account.

        Returns False (and sends nothing) for unknown or already verified
        addresses; callers answer the same way in both cases.
        """
        user = await self.get_by_email(db, email)
        if not user or user.is_verified:
            return False

        code = generate_verification_code()
        user.verification_code = code
        await db.commit()

        logger.log_auth_event(event="resend_verification", success=True, user_email=user.email)
        notifier.dispatch(
            email_service.send_verification_email(user.email, user.name, code),
            f"verification email to {user.email}",
        )
        return True

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> Tuple[str, User]:
        """
        Check credentials and issue a session token.

        Unknown email and wrong password raise the same error. Verification
        and activation are only reported once the password is correct.
        """
        user = await self.get_by_email(db, email)

        if not user or not verify_password(password, user.hashed_password):
            logger.log_auth_event(event="login", success=False, user_email=normalize_email(email), reason="Invalid credentials")
            raise InvalidCredentialsError()

        if not user.is_verified:
            logger.log_auth_event(event="login", success=False, user_email=user.email, reason="Email not verified")
            raise EmailUnverifiedError()

        if not user.is_active:
            logger.log_auth_event(event="login", success=False, user_email=user.email, reason="Account deactivated")
            raise AccountDeactivatedError()

        token = create_access_token({"sub": str(user.id), "role": user.role.value})

        logger.log_auth_event(event="login", success=True, user_email=user.email, user_role=user.role.value)
        return token, user

    async def get_linked_flat(self, db: AsyncSession, user: User) -> Optional[Flat]:
        """The flat a user is linked to, preferring the stored id when it still matches"""
        if not user.has_unit:
            return None
        if user.flat_id:
            flat = await db.get(Flat, user.flat_id)
            if flat is not None and (flat.wing, flat.flat_no) == (user.wing, user.flat_no):
                return flat
        return await occupancy_service.get_flat_by_unit(db, user.wing, user.flat_no)

    async def ensure_admin(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
    ) -> Tuple[User, bool]:
        """
        Create the (pre-verified) admin account unless one exists.

        Returns ``(admin, created)``.
        """
        existing = await self.get_admin(db)
        if existing:
            return existing, False

        email = normalize_email(email)
        if await self.get_by_email(db, email):
            raise DuplicateEmailError(email)

        admin = User(
            name=name,
            email=email,
            hashed_password=get_password_hash(password),
            phone=phone,
            role=UserRole.ADMIN,
            is_verified=True,
            is_active=True,
        )
        db.add(admin)
        await db.commit()
        await db.refresh(admin)

        logger.log_auth_event(event="create_admin", success=True, user_email=email)
        return admin, True


# Singleton instance
auth_service = AuthService()
