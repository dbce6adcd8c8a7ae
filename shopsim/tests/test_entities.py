import unittest

from shopsim.entities import (
    Customer,
    CustomerPolicy,
    StationKind,
    StationStateError,
    make_stations,
)
from shopsim.tests.stubs import StubRandomSource


class CustomerTest(unittest.TestCase):
    def test_waiting_time_and_label(self) -> None:
        customer = Customer(7, 1.5, CustomerPolicy.GREEDY)
        self.assertAlmostEqual(customer.waiting_time(4.0), 2.5)
        self.assertEqual(customer.label(), "7(greedy)")
        self.assertEqual(Customer(3, 0.0).label(), "3")


class StationTest(unittest.TestCase):
    """Occupancy and queue transitions of a single station."""

    def setUp(self) -> None:
        self.server = make_stations(1, 0, 1)[0]
        self.alice = Customer(1, 0.0)
        self.bob = Customer(2, 0.0)

    def test_serve_and_clear(self) -> None:
        self.assertTrue(self.server.can_serve())
        self.server.serve(self.alice)
        self.assertFalse(self.server.can_serve())
        self.assertIs(self.server.occupant, self.alice)
        self.server.clear()
        self.assertIsNone(self.server.occupant)

    def test_serving_twice_is_a_fault(self) -> None:
        self.server.serve(self.alice)
        with self.assertRaises(StationStateError):
            self.server.serve(self.bob)

    def test_queue_respects_capacity(self) -> None:
        self.assertTrue(self.server.can_enqueue())
        self.server.enqueue(self.alice)
        self.assertEqual(self.server.queue_length(), 1)
        self.assertFalse(self.server.can_enqueue())
        with self.assertRaises(StationStateError):
            self.server.enqueue(self.bob)
        self.assertEqual(self.server.queue_length(), 1)

    def test_dequeue_next_makes_head_the_occupant(self) -> None:
        server = make_stations(1, 0, 2)[0]
        server.serve(Customer(9, 0.0))
        server.enqueue(self.alice)
        server.enqueue(self.bob)
        self.assertIs(server.dequeue_next(), self.alice)
        self.assertIs(server.occupant, self.alice)
        self.assertEqual(server.queue_length(), 1)

    def test_dequeue_from_empty_queue_is_a_fault(self) -> None:
        with self.assertRaises(StationStateError):
            self.server.dequeue_next()

    def test_labels(self) -> None:
        stations = make_stations(2, 2, 1)
        self.assertEqual([s.label() for s in stations], ["server 1", "server 2", "self-check 3", "self-check 4"])


class SharedQueueTest(unittest.TestCase):
    def test_self_checkouts_share_one_queue(self) -> None:
        stations = make_stations(2, 3, 2)
        servers = [s for s in stations if s.kind is StationKind.SERVER]
        checkouts = [s for s in stations if s.kind is StationKind.SELF_CHECKOUT]
        self.assertIsNot(servers[0].queue, servers[1].queue)
        self.assertTrue(all(c.queue is checkouts[0].queue for c in checkouts))

        checkouts[0].enqueue(Customer(1, 0.0))
        self.assertEqual(checkouts[2].queue_length(), 1)
        checkouts[1].enqueue(Customer(2, 0.0))
        self.assertFalse(checkouts[0].can_enqueue())

        head = checkouts[2].dequeue_next()
        self.assertEqual(head.customer_id, 1)
        self.assertIs(checkouts[2].occupant, head)
        self.assertIsNone(checkouts[0].occupant)


class RestDecisionTest(unittest.TestCase):
    def test_server_rests_when_draw_below_probability(self) -> None:
        server = make_stations(1, 0, 1)[0]
        source = StubRandomSource(rest_decisions=[0.2, 0.8])
        self.assertTrue(server.decides_to_rest(source, 0.5))
        self.assertFalse(server.decides_to_rest(source, 0.5))

    def test_self_checkout_never_rests_nor_draws(self) -> None:
        checkout = make_stations(0, 1, 1)[0]
        source = StubRandomSource(rest_decisions=[0.0])
        self.assertFalse(checkout.decides_to_rest(source, 1.0))
        self.assertEqual(source.calls, [])


if __name__ == "__main__":
    unittest.main()
