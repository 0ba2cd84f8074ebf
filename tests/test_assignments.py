"""Tests for the assignment store and its mutation invariants."""

from __future__ import annotations

import threading

import pytest

from shopguard import (
    AssignmentNotFound,
    AssignmentStore,
    CannotDemoteOwner,
    CannotRemoveOwnerAssignment,
    DuplicateAssignment,
    InMemoryShopDirectory,
    InvalidInputError,
    NotCurrentOwner,
    OwnershipConflict,
    Shop,
    ShopAssignment,
    ShopOwnerOverride,
    ShopRole,
    User,
    can,
    resolve_effective_role,
)

SHOP = Shop(shop_id="shop_001", name="Whey Aroi Dee")
OTHER = Shop(shop_id="shop_002", name="Second Branch")


@pytest.fixture
def store() -> AssignmentStore:
    return AssignmentStore()


@pytest.fixture
def alice() -> User:
    return User(uid="alice")


@pytest.fixture
def bob() -> User:
    return User(uid="bob")


def snapshot(store: AssignmentStore) -> tuple:
    return store.users(), {shop.shop_id: store.owner_of(shop.shop_id) for shop in (SHOP, OTHER)}


class TestAssign:
    """Tests for assign()."""

    def test_assign_then_resolve(self, store: AssignmentStore, bob: User) -> None:
        """A fresh assignment is immediately reflected by the resolver."""
        assignments = store.assign(bob, SHOP, "Manager", assigned_by="root")
        assert len(assignments) == 1
        assert assignments[0].role == "manager"
        assert assignments[0].shop_name == "Whey Aroi Dee"
        assert assignments[0].assigned_by == "root"
        assert resolve_effective_role(store.get("bob"), "shop_001") == ShopRole("manager", "shop_001")

    def test_assign_owner_then_resolve(self, store: AssignmentStore, alice: User) -> None:
        store.assign(alice, SHOP, "admin", is_owner=True)
        assert resolve_effective_role(store.get("alice"), "shop_001") == ShopOwnerOverride("shop_001")
        assert store.owner_of("shop_001") == "alice"

    def test_assign_sets_current_shop_once(self, store: AssignmentStore, bob: User) -> None:
        store.assign(bob, SHOP, "staff")
        store.assign(bob, OTHER, "sales")
        user = store.get("bob")
        assert user.current_shop == "shop_001"
        assert user.shop_ids == ("shop_001", "shop_002")

    def test_duplicate_rejected(self, store: AssignmentStore, bob: User) -> None:
        store.assign(bob, SHOP, "staff")
        before = snapshot(store)
        with pytest.raises(DuplicateAssignment) as exc:
            store.assign(bob, SHOP, "manager")
        assert exc.value.code == "DUPLICATE_ASSIGNMENT"
        assert store.get("bob").assignment_for("shop_001").role == "staff"
        assert snapshot(store) == before

    def test_second_owner_rejected(self, store: AssignmentStore, alice: User, bob: User) -> None:
        store.assign(alice, SHOP, "admin", is_owner=True)
        before = snapshot(store)
        with pytest.raises(OwnershipConflict) as exc:
            store.assign(bob, SHOP, "admin", is_owner=True)
        assert exc.value.details["owner_uid"] == "alice"
        assert store.get("bob") is None
        assert snapshot(store) == before

    def test_failed_assign_does_not_register_unseen_owner(self, store: AssignmentStore) -> None:
        """An unseen record claiming ownership is not stored when the call fails."""
        carol = User(
            uid="carol",
            assigned_shops=[ShopAssignment(shop_id="shop_001", role="admin", is_owner=True)],
        )
        with pytest.raises(DuplicateAssignment):
            store.assign(carol, SHOP, "staff")
        assert store.get("carol") is None
        assert store.owner_of("shop_001") is None
        assert store.users() == ()

    def test_unseen_record_registered_on_success(self, store: AssignmentStore) -> None:
        carol = User(
            uid="carol",
            assigned_shops=[ShopAssignment(shop_id="shop_001", role="admin", is_owner=True)],
        )
        store.assign(carol, OTHER, "staff")
        assert store.get("carol").shop_ids == ("shop_001", "shop_002")
        assert store.owner_of("shop_001") == "carol"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_shop_name_required(self, store: AssignmentStore, bob: User, name: str) -> None:
        with pytest.raises(InvalidInputError, match="shop name") as exc:
            store.assign(bob, Shop(shop_id="shop_001", name=name), "staff")
        assert exc.value.details["field"] == "shop"
        assert store.users() == ()

    def test_non_owner_member_alongside_owner(self, store: AssignmentStore, alice: User, bob: User) -> None:
        store.assign(alice, SHOP, "admin", is_owner=True)
        store.assign(bob, SHOP, "sales")
        assert [u.uid for u, _ in store.members_of("shop_001")] == ["alice", "bob"]

    @pytest.mark.parametrize("role", ["viewer", "owner", "", None])
    def test_invalid_role(self, store: AssignmentStore, bob: User, role: object) -> None:
        with pytest.raises(InvalidInputError, match="Invalid role"):
            store.assign(bob, SHOP, role)  # type: ignore[arg-type]
        assert store.users() == ()

    def test_absent_user(self, store: AssignmentStore) -> None:
        with pytest.raises(InvalidInputError):
            store.assign(None, SHOP, "staff")  # type: ignore[arg-type]

    def test_passed_record_is_not_mutated(self, store: AssignmentStore, bob: User) -> None:
        store.assign(bob, SHOP, "staff")
        assert bob.assigned_shops == ()


class TestUpdateRole:
    """Tests for update_role()."""

    def test_update(self, store: AssignmentStore, bob: User) -> None:
        store.assign(bob, SHOP, "staff")
        assignments = store.update_role(bob, "shop_001", "manager")
        assert assignments[0].role == "manager"
        assert can(store.get("bob"), "shop_001", "staff", "write").allowed is True

    def test_same_role_is_noop(self, store: AssignmentStore, bob: User) -> None:
        before = store.assign(bob, SHOP, "staff")
        assert store.update_role(bob, "shop_001", "STAFF") == before

    def test_missing_assignment(self, store: AssignmentStore, bob: User) -> None:
        with pytest.raises(AssignmentNotFound):
            store.update_role(bob, "shop_001", "manager")
        assert store.get("bob") is None

    def test_cannot_demote_owner(self, store: AssignmentStore, alice: User) -> None:
        """Failed demotion leaves the stored assignment unchanged."""
        store.assign(alice, SHOP, "admin", is_owner=True)
        before = store.get("alice").assignment_for("shop_001")
        with pytest.raises(CannotDemoteOwner):
            store.update_role(alice, "shop_001", "sales")
        assert store.get("alice").assignment_for("shop_001") == before
        assert store.owner_of("shop_001") == "alice"


class TestRemove:
    """Tests for remove()."""

    def test_remove(self, store: AssignmentStore, bob: User) -> None:
        store.assign(bob, SHOP, "staff")
        assert store.remove(bob, "shop_001") == ()
        assert store.get("bob").current_shop is None
        assert can(store.get("bob"), "shop_001", "sales", "read").allowed is False

    def test_remove_moves_current_shop(self, store: AssignmentStore, bob: User) -> None:
        store.assign(bob, SHOP, "staff")
        store.assign(bob, OTHER, "sales")
        store.remove(bob, "shop_001")
        assert store.get("bob").current_shop == "shop_002"

    def test_remove_other_keeps_current_shop(self, store: AssignmentStore, bob: User) -> None:
        store.assign(bob, SHOP, "staff")
        store.assign(bob, OTHER, "sales")
        store.remove(bob, "shop_002")
        assert store.get("bob").current_shop == "shop_001"

    def test_cannot_remove_owner(self, store: AssignmentStore, alice: User) -> None:
        store.assign(alice, SHOP, "admin", is_owner=True)
        before = snapshot(store)
        with pytest.raises(CannotRemoveOwnerAssignment):
            store.remove(alice, "shop_001")
        assert store.get("alice").assignment_for("shop_001") is not None
        assert snapshot(store) == before

    def test_missing_assignment(self, store: AssignmentStore, bob: User) -> None:
        store.assign(bob, OTHER, "staff")
        before = snapshot(store)
        with pytest.raises(AssignmentNotFound):
            store.remove(bob, "shop_001")
        assert snapshot(store) == before

    def test_unseen_user_not_registered(self, store: AssignmentStore) -> None:
        carol = User(uid="carol", assigned_shops=[ShopAssignment(shop_id="shop_001", is_owner=True)])
        with pytest.raises(CannotRemoveOwnerAssignment):
            store.remove(carol, "shop_001")
        assert store.users() == ()
        assert store.owner_of("shop_001") is None


class TestTransferOwnership:
    """Tests for transfer_ownership()."""

    def test_transfer_to_existing_member(self, store: AssignmentStore, alice: User, bob: User) -> None:
        store.assign(alice, SHOP, "admin", is_owner=True)
        store.assign(bob, SHOP, "sales")
        store.transfer_ownership(alice, bob, "shop_001")

        old = store.get("alice").assignment_for("shop_001")
        new = store.get("bob").assignment_for("shop_001")
        assert old.is_owner is False
        assert old.role == "admin"
        assert new.is_owner is True
        assert store.owner_of("shop_001") == "bob"

    def test_transfer_creates_assignment(self, store: AssignmentStore, alice: User, bob: User) -> None:
        store.assign(alice, SHOP, "admin", is_owner=True)
        assignments = store.transfer_ownership(alice, bob, "shop_001")
        assert assignments[0].shop_id == "shop_001"
        assert assignments[0].is_owner is True
        assert assignments[0].assigned_by == "alice"
        assert store.get("bob").current_shop == "shop_001"

    def test_repeat_transfer_fails(self, store: AssignmentStore, alice: User, bob: User) -> None:
        """The previous owner can no longer transfer."""
        store.assign(alice, SHOP, "admin", is_owner=True)
        store.transfer_ownership(alice, bob, "shop_001")
        before = snapshot(store)
        with pytest.raises(NotCurrentOwner):
            store.transfer_ownership(alice, bob, "shop_001")
        assert snapshot(store) == before

    def test_non_owner_transfer_fails(self, store: AssignmentStore, alice: User, bob: User) -> None:
        store.assign(bob, SHOP, "admin")
        before = snapshot(store)
        with pytest.raises(NotCurrentOwner):
            store.transfer_ownership(bob, alice, "shop_001")
        assert store.owner_of("shop_001") is None
        assert store.get("alice") is None
        assert snapshot(store) == before

    def test_failed_transfer_between_unseen_users(self, store: AssignmentStore) -> None:
        """Neither party is registered when the transfer is rejected."""
        with pytest.raises(NotCurrentOwner):
            store.transfer_ownership(User(uid="x"), User(uid="y"), "shop_001")
        assert store.users() == ()

    def test_transfer_from_unseen_owner_record(self, store: AssignmentStore, bob: User) -> None:
        """An unseen record that owns an unowned shop may hand it over."""
        carol = User(
            uid="carol",
            assigned_shops=[ShopAssignment(shop_id="shop_001", shop_name="Whey Aroi Dee", role="admin", is_owner=True)],
        )
        store.transfer_ownership(carol, bob, "shop_001")
        assert store.owner_of("shop_001") == "bob"
        assert store.get("carol").assignment_for("shop_001").is_owner is False

    def test_former_owner_can_be_removed(self, store: AssignmentStore, alice: User, bob: User) -> None:
        store.assign(alice, SHOP, "admin", is_owner=True)
        store.transfer_ownership(alice, bob, "shop_001")
        assert store.remove(alice, "shop_001") == ()


class TestSeeding:
    """Tests for loading existing records."""

    def test_seed_with_existing_owner(self, bob: User) -> None:
        owner = User(uid="alice", assigned_shops=[ShopAssignment(shop_id="shop_001", role="admin", is_owner=True)])
        store = AssignmentStore([owner])
        assert store.owner_of("shop_001") == "alice"
        with pytest.raises(OwnershipConflict):
            store.assign(bob, SHOP, "admin", is_owner=True)

    def test_seed_conflicting_owners(self) -> None:
        users = [
            User(uid=uid, assigned_shops=[ShopAssignment(shop_id="shop_001", is_owner=True)])
            for uid in ("a", "b")
        ]
        with pytest.raises(OwnershipConflict):
            AssignmentStore(users)

    def test_seed_duplicate_shop(self) -> None:
        user = User(
            uid="a",
            assigned_shops=[ShopAssignment(shop_id="shop_001"), ShopAssignment(shop_id="shop_001")],
        )
        with pytest.raises(DuplicateAssignment):
            AssignmentStore([user])

    def test_orphaned_assignments_reported(self) -> None:
        """Deleting a shop leaves assignments in place for detection."""
        users = [
            User(uid="a", assigned_shops=[ShopAssignment(shop_id="shop_001"), ShopAssignment(shop_id="gone")]),
        ]
        store = AssignmentStore(users)
        orphans = store.find_orphaned_assignments(InMemoryShopDirectory([SHOP]))
        assert [(uid, a.shop_id) for uid, a in orphans] == [("a", "gone")]
        assert len(store.get("a").assigned_shops) == 2


class TestConcurrency:
    """Concurrent owner assignment keeps a single owner."""

    def test_single_owner_under_contention(self, store: AssignmentStore) -> None:
        errors: list[Exception] = []

        def claim(uid: str) -> None:
            try:
                store.assign(User(uid=uid), SHOP, "admin", is_owner=True)
            except OwnershipConflict as e:
                errors.append(e)

        threads = [threading.Thread(target=claim, args=(f"u{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        owners = [u.uid for u in store.users() if "shop_001" in u.owned_shop_ids]
        assert len(owners) == 1
        assert len(errors) == 7
        assert store.owner_of("shop_001") == owners[0]
