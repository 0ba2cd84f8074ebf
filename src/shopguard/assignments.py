"""In-memory shop assignment store with invariant-checked mutations.

Invariants held at all times:
- a user has at most one assignment per shop;
- at most one assignment system-wide is the owner of a given shop.

Every mutation runs its checks and its write under one lock, so a failed
call leaves the store exactly as it was. Records are immutable; each
mutation replaces the user's record and returns the new assignment tuple.
The durable-storage collaborator persists what the store hands back.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Iterable, Optional

from .exceptions import (
    AssignmentNotFound,
    CannotDemoteOwner,
    CannotRemoveOwnerAssignment,
    DuplicateAssignment,
    InvalidInputError,
    NotCurrentOwner,
    OwnershipConflict,
)
from .interfaces import ShopDirectory
from .logging import get_authz_logger
from .models import Shop, ShopAssignment, User
from .permissions.authority import require_user, validate_shop_id
from .permissions.constants import Role

logger = get_authz_logger(__name__)

Assignments = tuple[ShopAssignment, ...]


def _validate_role(role: Optional[str]) -> str:
    normalized = Role.normalize(role)
    if normalized not in Role.SHOP_ROLES:
        raise InvalidInputError(
            f"Invalid role: {role!r}. Must be one of {sorted(Role.SHOP_ROLES)}",
            field="role",
            role=role,
        )
    return normalized


def _replace(assignments: Assignments, updated: ShopAssignment) -> Assignments:
    return tuple(updated if a.shop_id == updated.shop_id else a for a in assignments)


class AssignmentStore:
    """Holds user records and the shop → owner index.

    Args:
        users: Initial user records. Both invariants are checked on load.

    Raises:
        DuplicateAssignment: A seeded user lists the same shop twice.
        OwnershipConflict: Two seeded users own the same shop.

    Example::

        store = AssignmentStore()
        store.assign(alice, shop, "admin", is_owner=True, assigned_by="root")
        store.assign(bob, shop, "sales", assigned_by="alice")
        store.transfer_ownership(alice, bob, shop.shop_id)
        store.owner_of(shop.shop_id)  # "bob"
    """

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._lock = threading.RLock()
        self._users: dict[str, User] = {}
        self._owners: dict[str, str] = {}
        for user in users:
            self._commit(self._check_seed(user))

    def _check_seed(self, user: User) -> User:
        """Check an unseen record against both invariants without storing it."""
        seen: set[str] = set()
        for assignment in user.assigned_shops:
            if assignment.shop_id in seen:
                raise DuplicateAssignment(uid=user.uid, shop_id=assignment.shop_id)
            seen.add(assignment.shop_id)
            owner = self._owners.get(assignment.shop_id)
            if assignment.is_owner and owner is not None and owner != user.uid:
                raise OwnershipConflict(shop_id=assignment.shop_id, owner_uid=owner)
        return user

    # ── Reads ───────────────────────────────────────────

    def get(self, uid: str) -> Optional[User]:
        with self._lock:
            return self._users.get(uid)

    def users(self) -> tuple[User, ...]:
        with self._lock:
            return tuple(self._users.values())

    def owner_of(self, shop_id: str) -> Optional[str]:
        """Uid of the shop's owner, or None if nobody owns it."""
        with self._lock:
            return self._owners.get(shop_id)

    def members_of(self, shop_id: str) -> tuple[tuple[User, ShopAssignment], ...]:
        with self._lock:
            return tuple(
                (user, assignment)
                for user in self._users.values()
                if (assignment := user.assignment_for(shop_id)) is not None
            )

    def find_orphaned_assignments(self, shops: ShopDirectory) -> list[tuple[str, ShopAssignment]]:
        """Assignments that reference shops missing from ``shops``.

        Orphans are reported, never dropped; removal stays an explicit call.
        """
        with self._lock:
            return [
                (user.uid, assignment)
                for user in self._users.values()
                for assignment in user.assigned_shops
                if shops.get_shop(assignment.shop_id) is None
            ]

    # ── Mutations ───────────────────────────────────────

    def _current(self, user: User) -> User:
        """Stored record for ``user``, or the checked unseen record.

        Unseen records are registered only by the commit of a successful
        mutation.
        """
        user = require_user(user)
        stored = self._users.get(user.uid)
        if stored is None:
            return self._check_seed(user)
        return stored

    def _assignment(self, user: User, shop_id: str) -> ShopAssignment:
        assignment = user.assignment_for(shop_id)
        if assignment is None:
            raise AssignmentNotFound(uid=user.uid, shop_id=shop_id)
        return assignment

    def _commit(self, user: User) -> None:
        self._users[user.uid] = user
        for shop_id, owner in list(self._owners.items()):
            if owner == user.uid and shop_id not in user.owned_shop_ids:
                del self._owners[shop_id]
        for shop_id in user.owned_shop_ids:
            self._owners[shop_id] = user.uid

    def assign(
        self,
        user: User,
        shop: Shop,
        role: str,
        is_owner: bool = False,
        assigned_by: Optional[str] = None,
    ) -> Assignments:
        """Add a membership for ``user`` in ``shop``.

        The user's ``current_shop`` defaults to this shop if unset.

        Raises:
            DuplicateAssignment: Already assigned to the shop; use update_role.
            OwnershipConflict: ``is_owner`` and someone else owns the shop;
                use transfer_ownership.
            InvalidInputError: Unknown role or malformed shop.
        """
        role = _validate_role(role)
        if shop is None or validate_shop_id(shop.shop_id) is None:
            raise InvalidInputError("A shop with an id is required", field="shop")
        if not shop.name.strip():
            raise InvalidInputError("A shop name is required", field="shop", shop_id=shop.shop_id)

        with self._lock:
            current = self._current(user)
            if current.assignment_for(shop.shop_id) is not None:
                logger.debug("Rejected duplicate assignment", uid=current.uid, shop_id=shop.shop_id)
                raise DuplicateAssignment(uid=current.uid, shop_id=shop.shop_id)
            owner = self._owners.get(shop.shop_id)
            if is_owner and owner is not None and owner != current.uid:
                logger.debug("Rejected second owner (owner=%s)", owner, uid=current.uid, shop_id=shop.shop_id)
                raise OwnershipConflict(shop_id=shop.shop_id, owner_uid=owner)

            assignment = ShopAssignment(
                shop_id=shop.shop_id,
                shop_name=shop.name,
                role=role,
                is_owner=is_owner,
                assigned_at=datetime.now(timezone.utc),
                assigned_by=assigned_by,
            )
            updated = current.model_copy(
                update={
                    "assigned_shops": current.assigned_shops + (assignment,),
                    "current_shop": current.current_shop or shop.shop_id,
                }
            )
            self._commit(updated)

        logger.info(
            "Assigned role %s%s by %s",
            role,
            " (owner)" if is_owner else "",
            assigned_by,
            uid=updated.uid,
            shop_id=shop.shop_id,
        )
        return updated.assigned_shops

    def update_role(self, user: User, shop_id: str, new_role: str) -> Assignments:
        """Change the role of an existing membership.

        Same role is a no-op. The owner's role may only be ``admin``.

        Raises:
            AssignmentNotFound: User is not assigned to the shop.
            CannotDemoteOwner: Owner would drop below admin.
            InvalidInputError: Unknown role or malformed shop id.
        """
        new_role = _validate_role(new_role)
        if validate_shop_id(shop_id) is None:
            raise InvalidInputError("A shop id is required", field="shop_id")

        with self._lock:
            current = self._current(user)
            assignment = self._assignment(current, shop_id)
            if assignment.role == new_role:
                return current.assigned_shops
            if assignment.is_owner and new_role != Role.ADMIN:
                logger.debug("Rejected owner demotion to %s", new_role, uid=current.uid, shop_id=shop_id)
                raise CannotDemoteOwner(uid=current.uid, shop_id=shop_id, role=new_role)

            updated = current.model_copy(
                update={
                    "assigned_shops": _replace(
                        current.assigned_shops,
                        assignment.model_copy(update={"role": new_role}),
                    )
                }
            )
            self._commit(updated)

        logger.info("Role changed %s → %s", assignment.role, new_role, uid=updated.uid, shop_id=shop_id)
        return updated.assigned_shops

    def remove(self, user: User, shop_id: str) -> Assignments:
        """Remove a membership.

        If the removed shop was the user's ``current_shop`` it moves to the
        first remaining assignment, or is cleared.

        Raises:
            AssignmentNotFound: User is not assigned to the shop.
            CannotRemoveOwnerAssignment: The membership is the shop's owner.
        """
        if validate_shop_id(shop_id) is None:
            raise InvalidInputError("A shop id is required", field="shop_id")

        with self._lock:
            current = self._current(user)
            assignment = self._assignment(current, shop_id)
            if assignment.is_owner:
                logger.debug("Rejected owner removal", uid=current.uid, shop_id=shop_id)
                raise CannotRemoveOwnerAssignment(uid=current.uid, shop_id=shop_id)

            remaining = tuple(a for a in current.assigned_shops if a.shop_id != shop_id)
            current_shop = current.current_shop
            if current_shop == shop_id:
                current_shop = remaining[0].shop_id if remaining else None
            updated = current.model_copy(update={"assigned_shops": remaining, "current_shop": current_shop})
            self._commit(updated)

        logger.info("Removed from shop", uid=updated.uid, shop_id=shop_id)
        return updated.assigned_shops

    def transfer_ownership(
        self,
        from_user: User,
        to_user: User,
        shop_id: str,
        assigned_by: Optional[str] = None,
    ) -> Assignments:
        """Move ownership of ``shop_id`` from one user to another.

        The previous owner keeps an ``admin`` membership. The new owner's
        membership is created if missing (role ``admin``), otherwise
        flagged as owner with its role raised to ``admin``.

        Returns:
            The new owner's assignments.

        Raises:
            NotCurrentOwner: ``from_user`` is not the recorded owner.
        """
        if validate_shop_id(shop_id) is None:
            raise InvalidInputError("A shop id is required", field="shop_id")

        with self._lock:
            source = self._current(from_user)
            target = self._current(to_user)
            owner = self._owners.get(shop_id)
            if owner is None and shop_id in source.owned_shop_ids:
                owner = source.uid
            if owner != source.uid:
                logger.debug("Rejected transfer by non-owner", uid=source.uid, shop_id=shop_id)
                raise NotCurrentOwner(uid=source.uid, shop_id=shop_id, owner_uid=owner)
            if source.uid == target.uid:
                return source.assigned_shops

            old = self._assignment(source, shop_id)
            new_source = source.model_copy(
                update={
                    "assigned_shops": _replace(
                        source.assigned_shops,
                        old.model_copy(update={"is_owner": False, "role": Role.ADMIN}),
                    )
                }
            )

            existing = target.assignment_for(shop_id)
            if existing is None:
                granted = ShopAssignment(
                    shop_id=shop_id,
                    shop_name=old.shop_name,
                    role=Role.ADMIN,
                    is_owner=True,
                    assigned_at=datetime.now(timezone.utc),
                    assigned_by=assigned_by or source.uid,
                )
                new_target = target.model_copy(
                    update={
                        "assigned_shops": target.assigned_shops + (granted,),
                        "current_shop": target.current_shop or shop_id,
                    }
                )
            else:
                new_target = target.model_copy(
                    update={
                        "assigned_shops": _replace(
                            target.assigned_shops,
                            existing.model_copy(update={"is_owner": True, "role": Role.ADMIN}),
                        )
                    }
                )

            self._commit(new_source)
            self._commit(new_target)

        logger.info("Ownership transferred %s → %s", source.uid, target.uid, shop_id=shop_id)
        return new_target.assigned_shops


__all__ = [
    "AssignmentStore",
    "Assignments",
]
