"""User store and account workflows for shopdesk."""

import logging
from dataclasses import replace

from .catalog_store import ProductCatalogStore
from .errors import (
    AccountInactiveError,
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    ShopdeskError,
    ValidationFailedError,
)
from .models import PurchaseLine, RemovePurchaseLine, User
from .resource_client import ResourceClient
from .session_store import Session
from .utils import RoundTripState

logger = logging.getLogger(__name__)


def _copy_lines(lines: list[PurchaseLine]) -> list[PurchaseLine]:
    return [replace(line) for line in lines]


class UserStore(RoundTripState):
    """
    Cached view of the users collection plus the authenticated session.

    Edits that take purchases away from a user give the stock back to the
    catalog before the user record is written.
    """

    def __init__(self, client: ResourceClient, catalog: ProductCatalogStore, session: Session):
        super().__init__()
        self.client = client
        self.catalog = catalog
        self.session = session
        self.users: list[User] = []

    @property
    def current_user(self) -> User | None:
        return self.session.current_user

    # --- cache helpers ---

    def _put(self, user: User) -> None:
        for i, existing in enumerate(self.users):
            if existing.id == user.id:
                self.users[i] = user
                return
        self.users.append(user)

    def find(self, user_id: str) -> User | None:
        for u in self.users:
            if u.id == user_id:
                return u
        return None

    # --- queries ---

    def fetch_users(self) -> list[User]:
        """Reload all users from the backend."""
        with self._round_trip():
            records = self.client.list()
        self.users = [User.from_dict(r) for r in records]
        return self.users

    def get(self, user_id: str, refresh: bool = False) -> User:
        """
        Get a user, from the cache unless ``refresh`` is set or it is missing.

        Raises:
            NotFoundError: If the backend has no such user.
        """
        if not refresh:
            cached = self.find(user_id)
            if cached is not None:
                return cached
        with self._round_trip():
            user = User.from_dict(self.client.get(user_id))
        self._put(user)
        return user

    def search(self, term: str) -> list[User]:
        """Users whose name, email, phone, gender or first address line contain ``term``."""
        needle = term.strip().lower()
        if not needle:
            return list(self.users)
        return [
            u
            for u in self.users
            if any(
                needle in (value or "").lower()
                for value in (u.full_name, u.email, u.phone_number, u.gender, u.address1)
            )
        ]

    def active_users(self) -> list[User]:
        return [u for u in self.users if u.is_active]

    # --- authentication ---

    def signup(
        self,
        full_name: str,
        email: str,
        password: str,
        **profile: str | None,
    ) -> User:
        """
        Register a new user.

        Args:
            full_name: Display name.
            email: Login email, unique case-insensitively.
            password: Login password.
            **profile: Optional User fields (phone_number, gender,
                profile_image and the address components).

        Raises:
            ValidationFailedError: If a required field is blank.
            DuplicateEmailError: If the email is already registered.
        """
        for name, value in (("Full name", full_name), ("Email", email), ("Password", password)):
            if not value or not value.strip():
                raise ValidationFailedError(f"{name} is required")

        existing = self.fetch_users()
        wanted = email.strip().lower()
        if any(u.email.lower() == wanted for u in existing):
            raise DuplicateEmailError(email)

        user = User.create(full_name=full_name, email=email.strip(), password=password, **profile)
        with self._round_trip():
            saved = User.from_dict(self.client.create(user.to_dict()))
        self._put(saved)
        logger.info("Signed up user %s (%s)", saved.id, saved.email)
        return saved

    def login(self, email: str, password: str) -> User:
        """
        Authenticate and start a session.

        Raises:
            NotFoundError: If no user has this email.
            InvalidCredentialsError: If the password does not match.
            AccountInactiveError: If the account is deactivated.
        """
        with self._round_trip():
            matches = self.client.get_by_field("email", email)
        if not matches:
            raise NotFoundError("User", email)

        user = User.from_dict(matches[0])
        if user.password != password:
            raise InvalidCredentialsError(email)
        if not user.is_active:
            raise AccountInactiveError(email)

        self.session.save(user)
        logger.info("User %s logged in", user.email)
        return user

    def logout(self) -> None:
        """End the session. No backend call is made."""
        user = self.session.current_user
        self.session.clear()
        if user is not None:
            logger.info("User %s logged out", user.email)

    # --- updates ---

    def persist(self, user: User) -> User:
        """
        Write the complete user record as is, without any stock reconciliation.

        The derived address is recomputed first and the session snapshot is
        refreshed when ``user`` is the current user.
        """
        user.derive_address()
        with self._round_trip():
            saved = User.from_dict(self.client.replace(user.id, user.to_dict()))
        self._put(saved)
        self.session.refresh(saved)
        return saved

    def update_user(self, updated: User) -> User:
        """
        Save an edited user.

        Purchase lines present in the record on the backend but missing from
        ``updated`` are treated as reversed purchases: their quantity is added
        back to the product stock before the user is saved. Restoration is
        best effort; a failure is logged and the user is saved regardless.
        """
        previous = self.get(updated.id, refresh=True)

        for line in previous.purchased_products:
            if updated.find_purchase(line.product_id) is not None:
                continue
            try:
                self.catalog.restock(line.product_id, line.quantity)
            except ShopdeskError as e:
                logger.warning(
                    "Could not restore %d unit(s) of %s for user %s: %s",
                    line.quantity,
                    line.product_id,
                    updated.id,
                    e,
                )

        saved = self.persist(updated)
        logger.info("Updated user %s", saved.id)
        return saved

    def set_active(self, user_id: str, active: bool) -> User:
        """Activate or deactivate an account."""
        user = self.get(user_id)
        extra = {k: v for k, v in user.extra.items() if k != "purchased"}
        updated = replace(
            user,
            is_active=active,
            purchased_products=_copy_lines(user.purchased_products),
            extra=extra,
        )
        saved = self.update_user(updated)
        logger.info("User %s %s", user_id, "activated" if active else "deactivated")
        return saved

    def remove_purchase_line(self, command: RemovePurchaseLine) -> User:
        """
        Take units back out of a user's purchase history and restock them.

        The line is dropped when its quantity reaches zero. A product that no
        longer exists is not restocked, but the history is still corrected.

        Raises:
            NotFoundError: If the user or the purchase line does not exist.
            ValidationFailedError: If the quantity is not in 1..line quantity.
        """
        user = self.get(command.user_id)
        line = user.find_purchase(command.product_id)
        if line is None:
            raise NotFoundError("Purchase", command.product_id)
        if command.quantity <= 0 or command.quantity > line.quantity:
            raise ValidationFailedError(
                f"Quantity to remove must be between 1 and {line.quantity}"
            )

        try:
            self.catalog.restock(command.product_id, command.quantity)
        except NotFoundError:
            logger.info("Product %s no longer exists, stock not restored", command.product_id)

        lines = []
        for existing in user.purchased_products:
            if existing.product_id == command.product_id:
                remaining = existing.quantity - command.quantity
                if remaining <= 0:
                    continue
                existing = replace(existing, quantity=remaining)
            else:
                existing = replace(existing)
            lines.append(existing)

        saved = self.persist(replace(user, purchased_products=lines))
        logger.info(
            "Removed %d unit(s) of %s from user %s",
            command.quantity,
            command.product_id,
            command.user_id,
        )
        return saved

    def delete_user(self, user_id: str) -> str:
        """
        Delete a user after giving all of their purchases back to stock.

        Products that no longer exist are skipped. Any other failure aborts
        the deletion before the user record is removed.
        """
        user = self.get(user_id, refresh=True)

        for line in user.purchased_products:
            try:
                self.catalog.restock(line.product_id, line.quantity)
            except NotFoundError:
                logger.debug("Skipping restock of missing product %s", line.product_id)

        with self._round_trip():
            self.client.remove(user_id)
        self.users = [u for u in self.users if u.id != user_id]
        logger.info("Deleted user %s", user_id)
        return user_id
