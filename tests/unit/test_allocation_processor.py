"""
Unit tests for profile_analyzer.processors.allocation_processor module.
"""
from profile_analyzer.processors.allocation_processor import AllocationProcessor


class TestAllocationProcessor:
    """Tests for per-type allocation trees."""

    def test_type_roots_ordered_by_bytes(self, make_event):
        """Test type roots are sorted by descending allocated bytes."""
        processor = AllocationProcessor()
        processor.process([
            make_event('GC/AllocationTick', stack=["Run"], AllocationAmount64=10, TypeName="System.Int32[]"),
            make_event('GC/AllocationTick', stack=["Run"], AllocationAmount64=300, TypeName="System.String"),
            make_event('GC/AllocationTick', stack=["Run"], AllocationAmount64=50, TypeName="System.Int32[]"),
        ])
        result = processor.build_result()

        assert [root.name for root in result.type_roots] == ["System.String", "System.Int32[]"]
        assert result.total_bytes == 360
        assert result.total_count == 3
        assert result.type_root("System.Int32[]").count == 2

    def test_type_tree_is_leaf_first(self, make_event):
        """Test the per-type tree starts at the allocating frame."""
        processor = AllocationProcessor()
        processor.process([
            make_event('GC/AllocationTick', stack=["Concat", "Format", "Main"],
                       AllocationAmount64=64, TypeName="System.String"),
            make_event('GC/AllocationTick', stack=["Concat", "Log", "Main"],
                       AllocationAmount64=32, TypeName="System.String"),
        ])
        result = processor.build_result()

        concat = result.type_roots[0].children["Concat"]
        assert concat.total_bytes == 96
        assert concat.count == 2
        assert concat.children["Format"].total_bytes == 64
        assert concat.children["Log"].children["Main"].total_bytes == 32

    def test_call_tree_overlay(self, make_event):
        """Test the frame-indexed call tree gets per-type allocation maps."""
        processor = AllocationProcessor()
        processor.process([
            make_event('GC/AllocationTick', stack=["Concat", "Main"], AllocationAmount64=64, TypeName="System.String"),
        ])
        result = processor.build_result()

        main = result.call_tree_root.find_child_by_name("Main")
        concat = main.find_child_by_name("Concat")
        assert result.call_tree_root.allocation_by_type == {"System.String": 64}
        assert main.allocation_by_type == {"System.String": 64}
        assert concat.allocation_count_by_type == {"System.String": 1}

    def test_allocation_without_stack_counts(self, make_event):
        """Test stackless allocations count towards totals and the type root."""
        processor = AllocationProcessor()
        processor.process([make_event('GC/AllocationTick', AllocationAmount64=8, TypeName="System.Object")])
        result = processor.build_result()

        assert result.total_bytes == 8
        assert result.type_roots[0].total_bytes == 8
        assert result.type_roots[0].children == {}
        assert result.call_tree_root.children == {}

    def test_missing_type_is_unknown(self, make_event):
        """Test allocations without a type name group under Unknown."""
        processor = AllocationProcessor()
        processor.process([make_event('GC/AllocationTick', stack=["Run"], AllocationAmount64=8, TypeName=" ")])
        result = processor.build_result()
        assert result.type_roots[0].name == "Unknown"

    def test_unresolved_frames_are_unknown(self, make_event):
        """Test frames without a method name are kept as Unknown in the type tree."""
        processor = AllocationProcessor()
        processor.process([
            make_event('GC/AllocationTick', stack=[None, "Main"], AllocationAmount64=8, TypeName="T"),
        ])
        result = processor.build_result()
        assert "Main" in result.type_roots[0].children["Unknown"].children

    def test_non_positive_amounts_are_ignored(self, make_event):
        """Test zero and negative amounts are dropped."""
        processor = AllocationProcessor()
        handled = processor.process([
            make_event('GC/AllocationTick', stack=["Run"], AllocationAmount64=0, TypeName="T"),
            make_event('GC/AllocationTick', stack=["Run"], AllocationAmount64=-5, TypeName="T"),
        ])
        assert handled == 0
        assert processor.build_result().type_roots == []

    def test_amount_fallback_field(self, make_event):
        """Test the 32-bit amount field is used when the 64-bit one is absent."""
        processor = AllocationProcessor()
        processor.process([make_event('GCAllocationTick_V2', stack=["Run"], AllocationAmount=12, TypeName="T")])
        assert processor.build_result().total_bytes == 12

    def test_dynamic_events_latched_by_typed(self, make_event):
        """Test dynamic allocation ticks stop counting once a typed tick appears."""
        processor = AllocationProcessor()
        processor.process([
            make_event('GCAllocationTick_V4', stack=["Run"], AllocationAmount64=1, TypeName="T"),
            make_event('GC/AllocationTick', stack=["Run"], AllocationAmount64=10, TypeName="T"),
            make_event('GCAllocationTick_V4', stack=["Run"], AllocationAmount64=100, TypeName="T"),
        ])
        assert processor.build_result().total_bytes == 11

    def test_other_providers_are_ignored(self, make_event):
        """Test events from other providers are skipped."""
        processor = AllocationProcessor()
        processor.process([
            make_event('GC/AllocationTick', provider='Other', stack=["Run"], AllocationAmount64=10, TypeName="T"),
        ])
        assert processor.build_result().total_count == 0
