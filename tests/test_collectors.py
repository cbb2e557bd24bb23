import io
import pytest
from lazyseq import Collector, Maybe, collectors, from_container


class TestCollectorProtocol:
    """The (supplier, accumulator, finisher) protocol"""

    def test_string_buffer_with_finisher(self):
        """Mutable buffer, append, finish to an immutable string"""
        def append(buffer, element):
            buffer.write(element)
            return buffer

        collector = Collector(io.StringIO, append, lambda buffer: buffer.getvalue())
        result = from_container(["a", "b", "c"]).collect(collector)
        assert result == "abc", f"Expected 'abc', got {result!r}"

    def test_returned_value_is_next_accumulator(self):
        """An accumulator returning a new value replaces the old one"""
        collector = Collector.of(tuple, lambda acc, element: acc + (element,))
        result = from_container([1, 2, 3]).collect(collector)
        assert result == (1, 2, 3), f"Unexpected result: {result}"

    def test_identity_finisher_by_default(self):
        """Without a finisher the accumulator is the result"""
        collector = Collector.of(lambda: 0, lambda acc, element: acc + element)
        assert collector.finisher(41) == 41
        assert from_container([1, 2, 3]).collect(collector) == 6

    def test_fresh_accumulator_per_evaluation(self):
        """The supplier is called for every evaluation"""
        collector = collectors.to_list()
        first = from_container([1]).collect(collector)
        second = from_container([2]).collect(collector)
        assert first == [1] and second == [2], "Accumulators must not be shared between runs"

    def test_evaluate_in_isolation(self):
        """Collectors run over plain iterables outside a pipeline"""
        assert collectors.joining(", ").evaluate(["x", "y"]) == "x, y"
        assert collectors.counting().evaluate(range(4)) == 4

    def test_accumulator_failure_propagates(self):
        """A failing accumulator aborts collect with the original error"""
        def accumulate(acc, element):
            if element == 2:
                raise ValueError("cannot take 2")
            acc.append(element)
            return acc

        with pytest.raises(ValueError, match="cannot take 2"):
            from_container([1, 2, 3]).collect(Collector(list, accumulate))

    def test_non_callable_parts_rejected(self):
        """All three parts must be callable"""
        with pytest.raises(TypeError):
            Collector([], lambda acc, x: acc)
        with pytest.raises(TypeError):
            Collector(list, lambda acc, x: acc, "finish")


class TestStockCollectors:
    """Ready-made collectors"""

    def test_to_list_and_to_set(self):
        assert from_container([3, 1, 3]).collect(collectors.to_list()) == [3, 1, 3]
        assert from_container([3, 1, 3]).collect(collectors.to_set()) == {1, 3}
        assert from_container([3, 1, 3]).to_set() == {1, 3}

    def test_to_dict(self):
        """Keys from key_fn, values from value_fn, duplicates need merge"""
        words = ["apple", "bob", "cat"]
        result = from_container(words).collect(collectors.to_dict(lambda w: w[0], len))
        assert result == {"a": 5, "b": 3, "c": 3}

        with pytest.raises(ValueError, match="Duplicate key"):
            from_container(["ab", "ac"]).collect(collectors.to_dict(lambda w: w[0]))

        merged = from_container(["ab", "ac"]).collect(
            collectors.to_dict(lambda w: w[0], merge=lambda old, new: old + new)
        )
        assert merged == {"a": "abac"}

    def test_joining(self):
        """String form of each element, with separator and affixes"""
        result = from_container([1, 2, 3]).collect(collectors.joining("-", "[", "]"))
        assert result == "[1-2-3]", f"Unexpected join: {result}"
        assert from_container([]).collect(collectors.joining(",", "<", ">")) == "<>"

    def test_summing_and_averaging(self):
        """Numeric collectors over a projection"""
        people = [{"age": 30}, {"age": 40}]
        assert from_container(people).collect(collectors.summing(lambda p: p["age"])) == 70
        assert from_container(people).collect(collectors.averaging(lambda p: p["age"])) == Maybe.of(35.0)
        assert from_container([]).collect(collectors.averaging()).is_empty

    def test_reducing(self):
        assert from_container([2, 3, 4]).collect(collectors.reducing(lambda a, b: a * b, 1)) == 24
        assert from_container([]).collect(collectors.reducing(lambda a, b: a * b, 1)) == 1

    def test_grouping_by_with_downstream(self):
        """Groups reduced by a downstream collector"""
        words = ["apple", "avocado", "banana", "blueberry", "cherry"]
        counts = from_container(words).collect(
            collectors.grouping_by(lambda w: w[0], collectors.counting())
        )
        assert counts == {"a": 2, "b": 2, "c": 1}, f"Unexpected counts: {counts}"

        lengths = from_container(words).collect(
            collectors.grouping_by(lambda w: w[0], collectors.mapping(len, collectors.to_list()))
        )
        assert lengths == {"a": [5, 7], "b": [6, 9], "c": [6]}

    def test_partitioning_by(self):
        """Both partitions are always present"""
        parts = from_container([1, 2, 3, 4, 5]).collect(collectors.partitioning_by(lambda x: x % 2 == 0))
        assert parts == {True: [2, 4], False: [1, 3, 5]}

        empty_parts = from_container([]).collect(
            collectors.partitioning_by(lambda x: x > 0, collectors.counting())
        )
        assert empty_parts == {True: 0, False: 0}
