"""Tests for the contract-net auction.

This module tests:
- Bid computation and allocation quotas
- Proposal book allocation, tie-breaks and draining
- Contractor-side allocation through the agent
"""

import threading

import pytest
from firecontrol.sim.environment import Forest
from firecontrol.swarm.agent import UAVAgent
from firecontrol.swarm.auction import (
    MAX_BID,
    Assignment,
    ProposalBook,
    allocation_quota,
    compute_bid,
)
from firecontrol.swarm.bus import SwarmBus
from firecontrol.swarm.geometry import Position
from firecontrol.swarm.task import Task


def make_task(utility: int = 10, radius: float = 5.0, contractor_id: int = 0) -> Task:
    return Task(
        task_id=0,
        centroid=Position(30.0, 30.0, 0.0),
        radius=radius,
        utility=utility,
        contractor_id=contractor_id,
    )


def always(_agent_id: int) -> bool:
    return True


class TestComputeBid:
    """Test bid computation."""

    def test_bid_is_utility_over_distance(self):
        """Test the basic bid formula."""
        assert compute_bid(10, 5.0) == pytest.approx(2.0)

    def test_bid_monotonic_in_distance(self):
        """Test that closer agents bid higher for the same task."""
        bids = [compute_bid(10, d) for d in (1.0, 2.0, 5.0, 20.0)]
        assert bids == sorted(bids, reverse=True)

    def test_bid_monotonic_in_utility(self):
        """Test that larger fires attract higher bids at equal distance."""
        assert compute_bid(20, 4.0) > compute_bid(10, 4.0)

    def test_zero_distance_gives_max_bid(self):
        """Test that an agent on the centroid bids the maximum value."""
        assert compute_bid(10, 0.0) == MAX_BID
        assert compute_bid(10, 1e-12) == MAX_BID

    def test_custom_epsilon(self):
        """Test the distance epsilon is configurable."""
        assert compute_bid(10, 0.5, epsilon=1.0) == MAX_BID
        assert compute_bid(10, 1.0, epsilon=1.0) == pytest.approx(10.0)


class TestAllocationQuota:
    """Test the proportional quota."""

    def test_quota_floor(self):
        """Test quota is the floor of the proportional share."""
        assert allocation_quota(10, 10, 10) == 10
        assert allocation_quota(10, 3, 10) == 3
        assert allocation_quota(10, 1, 3) == 3
        assert allocation_quota(1, 10, 10) == 1

    def test_zero_total_utility(self):
        """Test that no outstanding fire requires no agents."""
        assert allocation_quota(10, 0, 0) == 0


class TestProposalBook:
    """Test proposal book allocation."""

    def test_submit_overwrites(self):
        """Test that a second bid from the same agent replaces the first."""
        book = ProposalBook()
        book.submit(1, 0.3)
        book.submit(1, 0.9)
        assert book.snapshot() == {1: 0.9}

    def test_highest_bid_wins_and_book_drains(self):
        """Test that the best bid wins and the rest are discarded."""
        book = ProposalBook()
        book.submit(1, 0.8)
        book.submit(2, 0.5)
        task = make_task()
        offered = []

        winners = book.allocate(task, 1, always, lambda a: offered.append(a) or True)

        assert winners == [1]
        assert offered == [1]
        assert task.assigned_count == 1
        assert len(book) == 0

    def test_ties_go_to_lowest_id(self):
        """Test deterministic tie-break on equal bids."""
        book = ProposalBook()
        for agent_id in (7, 3, 5):
            book.submit(agent_id, 1.0)

        winners = book.allocate(make_task(), 2, always, always)
        assert winners == [3, 5]

    def test_rejection_never_selected(self):
        """Test that a zero bid is an explicit refusal."""
        book = ProposalBook()
        book.reject(1)
        book.submit(2, 0.1)

        winners = book.allocate(make_task(), 5, always, always)
        assert winners == [2]
        assert 1 not in book

    def test_busy_agents_skipped(self):
        """Test that agents already holding a task are not awarded."""
        book = ProposalBook()
        book.submit(1, 0.9)
        book.submit(2, 0.4)

        winners = book.allocate(make_task(), 1, lambda a: a != 1, always)
        assert winners == [2]

    def test_refused_offer_tries_next(self):
        """Test that a refused hand-over does not count toward the quota."""
        book = ProposalBook()
        book.submit(1, 0.9)
        book.submit(2, 0.4)
        task = make_task()

        winners = book.allocate(task, 1, always, lambda a: a != 1)
        assert winners == [2]
        assert task.assigned_count == 1

    def test_quota_already_met(self):
        """Test that nothing is awarded once the quota is reached, and bids are still drained."""
        book = ProposalBook()
        book.submit(1, 0.9)
        task = make_task()
        task.assigned_count = 3

        assert book.allocate(task, 3, always, always) == []
        assert len(book) == 0

    def test_concurrent_submissions(self):
        """Test bids from many threads are all recorded."""
        book = ProposalBook()
        threads = [threading.Thread(target=book.submit, args=(i, float(i + 1))) for i in range(50)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(book) == 50


class TestContractorAllocation:
    """Test allocation run by a contractor agent."""

    def setup_method(self):
        self.forest = Forest(60, 60)
        self.bus = SwarmBus(fleet_size=1)
        self.contractor = UAVAgent(0, Position(30.0, 30.0, 1.0), self.bus)
        self.b = UAVAgent(1, Position(20.0, 30.0, 1.0), self.bus)
        self.c = UAVAgent(2, Position(10.0, 30.0, 1.0), self.bus)
        for agent in (self.contractor, self.b, self.c):
            self.bus.register_agent(agent)

        self.task = make_task(utility=10, contractor_id=0)
        self.forest.tasks.add(self.task)
        self.contractor.task = self.task
        self.contractor.target = Position(30.0, 30.0, 1.0)

    def test_best_bidder_receives_assignment(self):
        """Test one award to the best bidder with the losing bid discarded."""
        self.contractor.proposals.submit(1, 0.8)
        self.contractor.proposals.submit(2, 0.5)

        winners = self.contractor.assign_tasks(self.forest)

        assert winners == [1]
        assert self.b.has_pending_assignment
        assert not self.c.has_pending_assignment
        assert len(self.contractor.proposals) == 0
        assert self.task.assigned_count == 1

    def test_winner_adopts_task_next_tick(self):
        """Test the award takes effect at the start of the winner's tick."""
        self.contractor.proposals.submit(1, 0.8)
        self.contractor.assign_tasks(self.forest)
        assert self.b.task is None

        self.b.tick(self.forest)

        assert self.b.task is self.task
        assert self.b.target is not None
        assert self.b.target.z == self.b.position.z
        assert not self.b.has_pending_assignment

    def test_non_contractor_does_not_allocate(self):
        """Test that only the task's contractor allocates."""
        self.b.task = self.task
        self.b.proposals.submit(2, 0.9)
        assert self.b.assign_tasks(self.forest) == []
        assert len(self.b.proposals) == 1

    def test_resolved_task_removed_before_allocation(self):
        """Test that a resolved task is dropped instead of allocated."""
        self.contractor.proposals.submit(1, 0.8)
        self.task.radius = 0.0

        assert self.contractor.assign_tasks(self.forest) == []
        assert self.task not in self.forest.tasks
        assert not self.b.has_pending_assignment

    def test_offer_refused_when_busy(self):
        """Test the inbox rejects an award for an agent already holding a task."""
        assignment = Assignment(task_id=0, contractor_id=0, target=Position(30.0, 30.0, 0.0))
        self.b.task = self.task
        assert self.b.offer_assignment(assignment) is False

    def test_offer_refused_when_award_pending(self):
        """Test only one award can be pending at a time."""
        assignment = Assignment(task_id=0, contractor_id=0, target=Position(30.0, 30.0, 0.0))
        assert self.b.offer_assignment(assignment) is True
        assert self.b.offer_assignment(assignment) is False
        assert not self.bus.is_idle(1)
