import pytest

from tpcli.utils.ring_buffer import RingBuffer


class TestConstruction:
    def test_new_buffer_is_empty(self):
        buf = RingBuffer(5)
        assert buf.is_empty()
        assert buf.size() == 0
        assert len(buf) == 0
        assert buf.capacity == 5

    def test_zero_capacity_rejected(self):
        with pytest.raises(ValueError):
            RingBuffer(0)

    def test_negative_capacity_rejected(self):
        with pytest.raises(ValueError):
            RingBuffer(-3)

    def test_non_int_capacity_rejected(self):
        with pytest.raises(TypeError):
            RingBuffer(2.5)

    def test_get_on_empty_buffer(self):
        buf = RingBuffer(3)
        assert buf.get(0) is None


class TestFilling:
    def test_items_in_insertion_order(self):
        buf = RingBuffer(5)
        items = ["one", "two", "three", "four", "five"]

        for inserted, value in enumerate(items, start=1):
            buf.append(value)
            assert not buf.is_empty()
            assert buf.size() == inserted

            for i in range(inserted):
                assert buf.get(i) == items[i]

            assert buf.get(inserted) is None

    def test_out_of_range_index_is_none(self):
        buf = RingBuffer(4)
        buf.append("a")
        buf.append("b")
        assert buf.get(2) is None
        assert buf.get(100) is None
        assert buf.get(-1) is None

    def test_empty_string_is_a_valid_item(self):
        buf = RingBuffer(2)
        buf.append("")
        assert buf.size() == 1
        assert buf.get(0) == ""


class TestEviction:
    def test_oldest_item_evicted_when_full(self):
        buf = RingBuffer(5)
        expected = ["one", "two", "three", "four", "five"]
        for value in expected:
            buf.append(value)

        for value in ["six", "seven", "eight", "nine", "ten", "eleven"]:
            expected = expected[1:] + [value]
            buf.append(value)

            assert buf.size() == 5
            assert [buf.get(i) for i in range(5)] == expected
            assert buf.get(5) is None

    def test_size_never_exceeds_capacity(self):
        buf = RingBuffer(3)
        for n in range(1, 20):
            buf.append(f"cmd{n}")
            assert buf.size() == min(n, 3)

    def test_oldest_is_capacity_behind_newest(self):
        capacity = 4
        buf = RingBuffer(capacity)
        inserted = [f"item{n}" for n in range(11)]
        for value in inserted:
            buf.append(value)

        assert buf.get(0) == inserted[len(inserted) - capacity]
        assert buf.get(capacity - 1) == inserted[-1]

    def test_capacity_of_one(self):
        buf = RingBuffer(1)
        buf.append("a")
        buf.append("b")
        assert buf.size() == 1
        assert buf.get(0) == "b"
        assert buf.get(1) is None


class TestIteration:
    def test_iterates_oldest_to_newest_after_wrap(self):
        buf = RingBuffer(3)
        for value in "abcde":
            buf.append(value)
        assert list(buf) == ["c", "d", "e"]

    def test_repr_lists_items(self):
        buf = RingBuffer(2)
        buf.append("x")
        assert repr(buf) == "RingBuffer(capacity=2, items=['x'])"
