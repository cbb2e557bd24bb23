import pytest
from lazyseq import from_container


class TestComposability:
    """Test operation composability and method chaining"""

    def test_method_chaining(self):
        """Test that methods can be chained together"""
        result = (
            from_container(range(20))
            .transform(lambda x: x * 2)
            .filter(lambda x: x > 10)
            .skip(3)
            .limit(5)
            .to_list()
        )

        expected = [18, 20, 22, 24, 26]
        assert result == expected, f"Expected {expected}, got {result}"

    def test_multiple_transforms(self):
        """Test composing multiple transform operations"""
        result = (
            from_container([1, 2, 3, 4, 5])
            .transform(lambda x: x * 2)
            .transform(lambda x: x + 1)
            .transform(lambda x: x * 3)
            .to_list()
        )

        expected = [9, 15, 21, 27, 33]  # ((x*2)+1)*3
        assert result == expected, f"Expected {expected}, got {result}"

    def test_multiple_filters(self):
        """Test composing multiple filter operations"""
        result = (
            from_container(range(20))
            .filter(lambda x: x % 2 == 0)  # Even numbers
            .filter(lambda x: x % 3 == 0)  # Divisible by 3
            .filter(lambda x: x > 5)       # Greater than 5
            .to_list()
        )

        expected = [6, 12, 18]
        assert result == expected, f"Expected {expected}, got {result}"

    def test_filter_then_for_each(self):
        """for_each sees exactly the elements the predicate accepts, in order"""
        seen = []
        from_container([1, 2, 3, 4, 5]).filter(lambda x: x % 2 == 0).for_each(seen.append)
        assert seen == [2, 4], f"Expected [2, 4], got {seen}"

    def test_skip_and_limit_composition(self):
        """Test composing skip and limit operations"""
        result = (
            from_container(range(20))
            .skip(5)
            .limit(10)
            .skip(2)
            .limit(5)
            .to_list()
        )

        # Skip 5 -> Take 10 -> Skip 2 -> Take 5
        expected = [7, 8, 9, 10, 11]
        assert result == expected, f"Expected {expected}, got {result}"

    def test_distinct_keeps_first_occurrence(self):
        """distinct() preserves the order of first occurrences"""
        result = from_container([3, 1, 3, 2, 1, 4]).distinct().to_list()
        assert result == [3, 1, 2, 4], f"Unexpected distinct result: {result}"

    def test_distinct_by_key_and_unhashable(self):
        """distinct() accepts a key function and unhashable elements"""
        words = from_container(["apple", "Avocado", "banana", "Blueberry", "cherry"])
        result = words.distinct(key=lambda w: w[0].lower()).to_list()
        assert result == ["apple", "banana", "cherry"], f"Unexpected result: {result}"

        lists = from_container([[1], [2], [1], [3], [2]]).distinct().to_list()
        assert lists == [[1], [2], [3]], f"Unexpected result: {lists}"

    def test_take_while_and_drop_while(self):
        """Prefix and suffix split on a predicate"""
        prefix = from_container([1, 2, 5, 1, 2]).take_while(lambda x: x < 3).to_list()
        suffix = from_container([1, 2, 5, 1, 2]).drop_while(lambda x: x < 3).to_list()
        assert prefix == [1, 2], f"Unexpected take_while result: {prefix}"
        assert suffix == [5, 1, 2], f"Unexpected drop_while result: {suffix}"

    def test_batch_and_page(self):
        """Batching groups elements; paging selects a window"""
        batches = from_container(range(1, 8)).batch(3).to_list()
        assert batches == [(1, 2, 3), (4, 5, 6), (7,)], f"Unexpected batches: {batches}"

        page2 = from_container(range(1, 21)).page(2, 5).to_list()
        assert page2 == [6, 7, 8, 9, 10], f"Unexpected page: {page2}"

    def test_sorted_is_buffering_stage(self):
        """sorted() yields the buffered upstream in order and composes with later stages"""
        result = (
            from_container([5, 3, 9, 1, 7])
            .sorted(reverse=True)
            .limit(3)
            .to_list()
        )
        assert result == [9, 7, 5], f"Unexpected sorted result: {result}"

    def test_composability_with_empty_results(self):
        """Test composability when intermediate operations produce empty results"""
        calls = []
        result = (
            from_container([1, 2, 3, 4, 5])
            .filter(lambda x: x > 10)                     # No matches
            .transform(lambda x: calls.append(x) or x)    # Should not be called
            .limit(3)
            .to_list()
        )

        assert result == [], f"Expected empty list, got {result}"
        assert calls == [], "Transform should not run when nothing survives the filter"

    def test_operation_order_matters(self):
        """Test that the order of operations affects the result"""
        result1 = (
            from_container(range(10))
            .filter(lambda x: x > 5)
            .transform(lambda x: x * 2)
            .to_list()
        )

        result2 = (
            from_container(range(10))
            .transform(lambda x: x * 2)
            .filter(lambda x: x > 5)
            .to_list()
        )

        assert result1 == [12, 14, 16, 18], f"Result1 unexpected: {result1}"
        assert result2 == [6, 8, 10, 12, 14, 16, 18], f"Result2 unexpected: {result2}"

    def test_each_stage_returns_new_sequence(self):
        """Stages never mutate the sequence they are called on"""
        base = from_container([1, 2, 3])
        filtered = base.filter(lambda x: x > 1)
        assert filtered is not base, "Stage should return a new sequence"
        assert base._ops == [], "Upstream sequence should be unchanged"
        assert filtered.to_list() == [2, 3]

    def test_map_and_flat_map_aliases(self):
        """map/flat_map/take behave like transform/flat_expand/limit"""
        result = (
            from_container(["a b", "c"])
            .flat_map(str.split)
            .map(str.upper)
            .take(2)
            .to_list()
        )
        assert result == ["A", "B"], f"Unexpected result: {result}"
