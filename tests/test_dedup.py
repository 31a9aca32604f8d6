"""Tests for collision-free id assignment."""

from qaforge.generation.dedup import collect_ids, ensure_unique_id, merge_unique


class TestEnsureUniqueId:
    """Tests for ensure_unique_id."""

    def test_free_candidate_is_unchanged(self):
        """Test a free id is returned as is."""
        assert ensure_unique_id("login", {"logout"}) == "login"

    def test_first_free_suffix(self):
        """Test the lowest free suffix is chosen."""
        assert ensure_unique_id("t1", {"t1"}) == "t1-1"
        assert ensure_unique_id("t1", {"t1", "t1-1", "t1-3"}) == "t1-2"

    def test_deterministic(self):
        """Test the same input always yields the same id."""
        existing = {"a", "a-1"}
        assert ensure_unique_id("a", existing) == ensure_unique_id("a", existing) == "a-2"


class TestMergeUnique:
    """Tests for merge_unique."""

    def test_renames_colliding_additions(self, gui_case):
        """Test additions colliding with the collection or each other are renamed."""
        collection = [gui_case("a")]
        additions = [gui_case("a"), gui_case("a"), gui_case("b")]

        merged = merge_unique(collection, additions)

        assert [case.id for case in merged] == ["a", "a-1", "a-2", "b"]
        assert len(collect_ids(merged)) == len(merged)

    def test_inputs_are_not_modified(self, gui_case):
        """Test neither the collection nor the additions change."""
        collection = [gui_case("a")]
        additions = [gui_case("a")]

        merge_unique(collection, additions)

        assert [case.id for case in collection] == ["a"]
        assert [case.id for case in additions] == ["a"]
