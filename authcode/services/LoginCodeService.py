"""Login code lifecycle: issue, verify and consume six digit email codes.

All state lives in Appwrite. Neither the replacement of old codes nor the
profile upsert is transactional: concurrent requests for the same email can
race unless ``LOGIN_CODE_UPSERT`` is enabled, which turns code replacement
into one write on a document id derived from the email.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from authcode.constants.constants import (
    DEFAULT_ROLE,
    SELF_ASSIGNABLE_ROLES,
    LookupStatus,
    RolesPolicy,
)
from authcode.core.config import Settings
from authcode.core.exceptions import DomainError, ValidationError
from authcode.core.security import acheck_code, ahash_code, generate_code, issue_access_token
from authcode.models.logincode import LoginCode
from authcode.models.userprofile import UserProfile, dump_roles, empty_roles
from authcode.services.AppwriteClient import ID, AppwriteClient, Query

logger = logging.getLogger(__name__)

STALE_CODES_PAGE = 100


def now_ms() -> int:
    return int(time.time() * 1000)


def login_code_document_id(email: str) -> str:
    """Deterministic document id for an email, within Appwrite's 36 char limit."""
    return "lc" + hashlib.sha256(email.encode("utf-8")).hexdigest()[:34]


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def normalize_role(role: Optional[str]) -> str:
    return str(role or DEFAULT_ROLE).strip()


def normalize_ref(ref: Optional[str]) -> Optional[str]:
    return str(ref).strip() if ref else None


@dataclass
class LookupResult:
    """Outcome of an identity lookup, keeps "not found" apart from "failed"."""

    status: LookupStatus
    user_id: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status == LookupStatus.found


@dataclass
class SendCodeResult:
    email: str
    user_id: str
    code: str
    expires_at: int


@dataclass
class VerifyCodeResult:
    user_id: str
    role_set: str
    token: str


class LoginCodeService:
    """
    Issues and verifies login codes against an Appwrite project.

    Args:
        store: Appwrite client used for users and documents.
        settings: Collection ids, code lifetime, hashing cost and policies.
        clock: Returns the current time in epoch millis.
        code_generator: Returns a new plaintext six digit code.
    """

    def __init__(
        self,
        store: AppwriteClient,
        settings: Settings,
        clock: Callable[[], int] = now_ms,
        code_generator: Callable[[], str] = generate_code
    ):
        self.store = store
        self.settings = settings
        self.clock = clock
        self.code_generator = code_generator

    @property
    def _db(self) -> str:
        return self.settings.APPWRITE_DB_ID

    @property
    def _codes(self) -> str:
        return self.settings.APPWRITE_LOGIN_CODES_COLLECTION_ID

    @property
    def _profiles(self) -> str:
        return self.settings.APPWRITE_USER_PROFILES_COLLECTION_ID

    # -----------------------------
    # Identity
    # -----------------------------
    async def find_user_id(self, email: str) -> LookupResult:
        """Look up the Appwrite user for an email without creating one."""
        try:
            listed = await self.store.list_users([Query.equal("email", email)])
        except Exception as e:
            logger.warning(f"⚠️ User lookup failed for {email}: {e}")
            return LookupResult(LookupStatus.failed)

        users = listed.get("users") or []
        if listed.get("total", 0) > 0 and users:
            return LookupResult(LookupStatus.found, user_id=users[0]["$id"])
        return LookupResult(LookupStatus.not_found)

    async def resolve_or_create_user(self, email: str) -> str:
        """Return the user id for an email, creating the user when absent."""
        lookup = await self.find_user_id(email)
        if lookup.found:
            return lookup.user_id

        created = await self.store.create_user(ID.unique(), email)
        logger.info(f"👤 Created Appwrite user {created['$id']} for {email}")
        return created["$id"]

    # -----------------------------
    # Login codes
    # -----------------------------
    async def delete_codes_for(self, email: str, keep: Optional[str] = None) -> int:
        """Best-effort removal of every stored code for an email, except ``keep``."""
        deleted = 0
        try:
            old = await self.store.list_documents(
                self._db,
                self._codes,
                [Query.equal("email", email), Query.limit(STALE_CODES_PAGE)],
            )
        except Exception as e:
            logger.warning(f"⚠️ Could not list stale codes for {email}: {e}")
            return deleted

        for document in old.get("documents") or []:
            if document["$id"] == keep:
                continue
            try:
                await self.store.delete_document(self._db, self._codes, document["$id"])
                deleted += 1
            except Exception as e:
                logger.warning(f"⚠️ Could not delete stale code {document['$id']}: {e}")
        return deleted

    async def store_code(self, login_code: LoginCode) -> LoginCode:
        """Persist a code so it becomes the only active one for its email."""
        if self.settings.LOGIN_CODE_UPSERT:
            document_id = login_code_document_id(login_code.email)
            document = await self.store.upsert_document(
                self._db, self._codes, document_id, login_code.to_data()
            )
            # codes written by delete-then-insert would otherwise outlive this one
            await self.delete_codes_for(login_code.email, keep=document_id)
        else:
            await self.delete_codes_for(login_code.email)
            document = await self.store.create_document(
                self._db, self._codes, ID.unique(), login_code.to_data()
            )
        login_code.id = document.get("$id")
        return login_code

    async def latest_code(self, email: str) -> Optional[LoginCode]:
        listed = await self.store.list_documents(
            self._db,
            self._codes,
            [Query.equal("email", email), Query.order_desc("$createdAt"), Query.limit(1)],
        )
        documents = listed.get("documents") or []
        if not documents:
            return None
        return LoginCode.from_document(documents[0])

    async def send_code(
        self,
        email: Optional[str],
        role: Optional[str] = None,
        ref: Optional[str] = None
    ) -> SendCodeResult:
        """
        Issue a new code for an email.

        Ensures the Appwrite user exists, stores the bcrypt hash of a fresh
        code and replaces any code issued before.

        Raises:
            ValidationError: If the email is empty.
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")
        role = normalize_role(role)
        ref = normalize_ref(ref)

        user_id = await self.resolve_or_create_user(email)

        code = self.code_generator()
        code_hash = await ahash_code(code, self.settings.BCRYPT_ROUNDS)
        expires_at = self.clock() + self.settings.CODE_TTL_MS

        await self.store_code(
            LoginCode(email=email, code_hash=code_hash, role=role, ref=ref, expires_at=expires_at)
        )

        if self.settings.DEV_MODE:
            logger.info(f"[DEV] Code for {email} ({role}): {code}")
        return SendCodeResult(email=email, user_id=user_id, code=code, expires_at=expires_at)

    # -----------------------------
    # Profiles
    # -----------------------------
    def build_roles(self, role: str, existing: Optional[UserProfile] = None) -> Dict[str, bool]:
        """Roles object written for a verification under the configured policy."""
        if existing is not None and self.settings.ROLES_POLICY == RolesPolicy.merge.value:
            roles = existing.roles_map
        else:
            roles = empty_roles()
        if role in [r.value for r in SELF_ASSIGNABLE_ROLES]:
            roles[role] = True
        return roles

    async def upsert_profile(
        self,
        user_id: str,
        email: str,
        role: str,
        ref: Optional[str] = None
    ) -> UserProfile:
        """Create the profile for a user or update the existing one."""
        listed = await self.store.list_documents(
            self._db, self._profiles, [Query.equal("user_id", user_id)]
        )
        documents = listed.get("documents") or []
        existing = UserProfile.from_document(documents[0]) if documents else None

        data = {"email": email, "roles": dump_roles(self.build_roles(role, existing))}
        if ref:
            data["ref"] = ref

        if existing is not None:
            document = await self.store.update_document(self._db, self._profiles, existing.id, data)
        else:
            data["user_id"] = user_id
            document = await self.store.create_document(self._db, self._profiles, ID.unique(), data)
        return UserProfile.from_document({"user_id": user_id, **data, **document})

    # -----------------------------
    # Verification
    # -----------------------------
    async def consume_code(self, login_code: LoginCode) -> bool:
        """Best-effort delete of a verified code."""
        try:
            await self.store.delete_document(self._db, self._codes, login_code.id)
            return True
        except Exception as e:
            logger.warning(f"⚠️ Could not delete used code {login_code.id} for {login_code.email}: {e}")
            return False

    async def verify_code(
        self,
        email: Optional[str],
        code: Optional[str],
        role: Optional[str] = None,
        ref: Optional[str] = None
    ) -> VerifyCodeResult:
        """
        Verify a code and record the requested role on the user profile.

        An expired or mismatched code is left in the store; only a successful
        verification consumes it.

        Raises:
            ValidationError: If email or code is empty.
            DomainError: If no code exists, it expired, it does not match or
                the Appwrite user is missing.
        """
        email = normalize_email(email)
        code = (code or "").strip()
        if not email or not code:
            raise ValidationError("Email and code are required")
        role = normalize_role(role)
        ref = normalize_ref(ref)

        login_code = await self.latest_code(email)
        if login_code is None:
            raise DomainError("No code found")
        if login_code.is_expired(self.clock()):
            raise DomainError("Code expired")
        if not await acheck_code(code, login_code.code_hash):
            raise DomainError("Invalid code")

        lookup = await self.find_user_id(email)
        if not lookup.found:
            raise DomainError("User not found - request a new code")

        profile = await self.upsert_profile(lookup.user_id, email, role, ref)
        await self.consume_code(login_code)

        token = issue_access_token(lookup.user_id, email, role, self.clock(), self.settings)
        logger.info(f"✅ Verified {email} as {role} (user {lookup.user_id}, profile {profile.id})")
        return VerifyCodeResult(user_id=lookup.user_id, role_set=role, token=token)
