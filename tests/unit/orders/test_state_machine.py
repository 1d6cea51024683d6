"""Unit tests for the Order status state machine.

Covers:
- Every edge in ``VALID_TRANSITIONS`` is accepted for an allowed party.
- Every non-edge (skips, reversals, leaving terminal states, self-loops)
  is rejected with ``InvalidOrderStatus``.
- Seller-only targets are rejected for the buyer.
- Party resolution: role must match the caller's side of the order.
- Check order: party, then edge, then role.
- Changes written by a transition (timestamp, notes field).
"""

from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest

from modules.orders.constants import (
    SELLER_ONLY_STATES,
    STATUS_TIMESTAMP_FIELDS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderParty,
    OrderStatus,
)
from modules.orders.exceptions import (
    InvalidOrderData,
    InvalidOrderStatus,
    UnauthorizedOrderAction,
)
from modules.orders.models import Order
from modules.orders.state_machine import OrderStateMachine
from modules.users.models import UserRole

pytestmark = pytest.mark.unit

SELLER_ID = 10
BUYER_ID = 20

ALL_STATES = list(OrderStatus.values)
EDGES = [(src, dst) for src, targets in VALID_TRANSITIONS.items() for dst in targets]
NON_EDGES = [
    (src, dst)
    for src, dst in itertools.product(ALL_STATES, ALL_STATES)
    if dst not in VALID_TRANSITIONS[src]
]


@pytest.fixture()
def machine():
    return OrderStateMachine()


def make_order(status=OrderStatus.PENDING):
    return Order(seller_id=SELLER_ID, buyer_id=BUYER_ID, status=status)


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------


class TestTransitionTable:
    def test_every_state_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(ALL_STATES)

    def test_terminal_states_have_no_exits(self):
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == frozenset()

    def test_table_edges(self):
        assert sorted(EDGES) == sorted(
            [
                ("pending", "confirmed"),
                ("pending", "cancelled"),
                ("confirmed", "preparing"),
                ("confirmed", "cancelled"),
                ("preparing", "ready"),
                ("preparing", "cancelled"),
                ("ready", "completed"),
            ]
        )

    def test_model_helpers_follow_table(self):
        for src, dst in EDGES:
            assert make_order(src).can_transition_to(dst)
        for src, dst in NON_EDGES:
            assert not make_order(src).can_transition_to(dst)

    @pytest.mark.parametrize("state", ALL_STATES)
    def test_is_terminal(self, state):
        assert make_order(state).is_terminal is (state in TERMINAL_STATES)


class TestValidate:
    @pytest.mark.parametrize("src,dst", EDGES)
    def test_every_edge_accepted_for_seller(self, machine, src, dst):
        machine.validate(src, dst, OrderParty.SELLER)

    @pytest.mark.parametrize(
        "src,dst", [(s, d) for s, d in EDGES if d not in SELLER_ONLY_STATES]
    )
    def test_cancel_and_complete_accepted_for_buyer(self, machine, src, dst):
        machine.validate(src, dst, OrderParty.BUYER)

    @pytest.mark.parametrize(
        "src,dst", [(s, d) for s, d in EDGES if d in SELLER_ONLY_STATES]
    )
    def test_seller_only_targets_rejected_for_buyer(self, machine, src, dst):
        with pytest.raises(UnauthorizedOrderAction):
            machine.validate(src, dst, OrderParty.BUYER)

    @pytest.mark.parametrize("src,dst", NON_EDGES)
    @pytest.mark.parametrize("party", [OrderParty.SELLER, OrderParty.BUYER])
    def test_every_non_edge_rejected(self, machine, src, dst, party):
        with pytest.raises(InvalidOrderStatus) as exc_info:
            machine.validate(src, dst, party)
        assert exc_info.value.current == src
        assert exc_info.value.requested == dst
        assert src in str(exc_info.value) and dst in str(exc_info.value)

    def test_edge_checked_before_role(self, machine):
        # pending -> ready is both a skip and seller-only; the skip wins.
        with pytest.raises(InvalidOrderStatus):
            machine.validate(OrderStatus.PENDING, OrderStatus.READY, OrderParty.BUYER)


# ---------------------------------------------------------------------------
# Party resolution
# ---------------------------------------------------------------------------


class TestResolveParty:
    def test_farmer_on_own_order_is_seller(self, machine):
        assert (
            machine.resolve_party(make_order(), SELLER_ID, UserRole.FARMER)
            == OrderParty.SELLER
        )

    def test_buyer_on_own_order_is_buyer(self, machine):
        assert (
            machine.resolve_party(make_order(), BUYER_ID, UserRole.BUYER)
            == OrderParty.BUYER
        )

    def test_string_ids_match(self, machine):
        assert (
            machine.resolve_party(make_order(), str(SELLER_ID), UserRole.FARMER)
            == OrderParty.SELLER
        )

    @pytest.mark.parametrize(
        "user_id,role",
        [
            (99, UserRole.FARMER),
            (99, UserRole.BUYER),
            (SELLER_ID, UserRole.BUYER),
            (BUYER_ID, UserRole.FARMER),
        ],
    )
    def test_strangers_and_role_mismatch_rejected(self, machine, user_id, role):
        with pytest.raises(UnauthorizedOrderAction):
            machine.resolve_party(make_order(), user_id, role)


# ---------------------------------------------------------------------------
# plan()
# ---------------------------------------------------------------------------


class TestPlan:
    NOW = datetime(2025, 3, 1, 15, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("target", sorted(STATUS_TIMESTAMP_FIELDS))
    def test_stamps_entry_timestamp(self, machine, target):
        source = next(src for src, dst in EDGES if dst == target)
        user_id, role = (
            (BUYER_ID, UserRole.BUYER)
            if target == OrderStatus.COMPLETED
            else (SELLER_ID, UserRole.FARMER)
        )
        _, changes = machine.plan(make_order(source), target, user_id, role, now=self.NOW)
        assert changes["status"] == target
        assert changes[STATUS_TIMESTAMP_FIELDS[target]] == self.NOW

    def test_cancel_stamps_nothing(self, machine):
        _, changes = machine.plan(
            make_order(), OrderStatus.CANCELLED, BUYER_ID, UserRole.BUYER
        )
        assert changes == {"status": OrderStatus.CANCELLED}

    def test_seller_notes_go_to_seller_field(self, machine):
        party, changes = machine.plan(
            make_order(), OrderStatus.CONFIRMED, SELLER_ID, UserRole.FARMER, notes="Listo el martes"
        )
        assert party == OrderParty.SELLER
        assert changes["seller_notes"] == "Listo el martes"
        assert "buyer_notes" not in changes

    def test_buyer_notes_go_to_buyer_field(self, machine):
        party, changes = machine.plan(
            make_order(), OrderStatus.CANCELLED, BUYER_ID, UserRole.BUYER, notes="Ya no lo necesito"
        )
        assert party == OrderParty.BUYER
        assert changes["buyer_notes"] == "Ya no lo necesito"

    def test_unknown_status_is_invalid_data(self, machine):
        with pytest.raises(InvalidOrderData):
            machine.plan(make_order(), "shipped", SELLER_ID, UserRole.FARMER)

    def test_party_checked_before_edge(self, machine):
        # Stranger asking for an illegal edge is told they are not allowed.
        with pytest.raises(UnauthorizedOrderAction):
            machine.plan(make_order(OrderStatus.COMPLETED), OrderStatus.PENDING, 99, UserRole.FARMER)
