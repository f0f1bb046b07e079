"""
Unit tests for profile_analyzer.processors.cpu_sample_processor module.
"""
import pytest
from profile_analyzer.core.types import CpuProfileResult, EmptyProfile
from profile_analyzer.processors.cpu_sample_processor import CpuSampleProcessor


def child_named(node, name):
    child = node.find_child_by_name(name)
    assert child is not None, f"{name} not found under {node.name}"
    return child


class TestCpuSampleProcessor:
    """Tests for CPU sample weighting and merging."""

    def test_delta_weighting(self, make_sample):
        """Test each sample is weighted by the time since the previous sample."""
        processor = CpuSampleProcessor()
        processor.process([
            make_sample(10.0, ["Work", "Main"]),
            make_sample(12.0, ["Work", "Main"]),
            make_sample(17.0, ["Idle", "Main"]),
        ])
        result = processor.build_result()

        main = child_named(result.call_tree_root, "Main")
        assert main.total == pytest.approx(7.0)
        assert main.calls == 3
        assert child_named(main, "Work").total == pytest.approx(2.0)
        assert child_named(main, "Work").self_time == pytest.approx(2.0)
        assert child_named(main, "Idle").total == pytest.approx(5.0)
        assert main.self_time == 0

    def test_root_totals(self, make_sample):
        """Test the root carries total time and sample count."""
        processor = CpuSampleProcessor(source_path="trace.json")
        processor.process([make_sample(0.0, ["A"]), make_sample(4.0, ["A"])])
        result = processor.build_result()

        assert isinstance(result, CpuProfileResult)
        assert result.call_tree_total == pytest.approx(4.0)
        assert result.call_tree_root.total == pytest.approx(4.0)
        assert result.call_tree_root.calls == 2
        assert result.total_samples == 2
        assert result.source_path == "trace.json"
        assert (result.time_unit_label, result.count_label, result.count_suffix) == ("ms", "Samples", " samp")

    def test_out_of_order_timestamps_clamp_to_zero(self, make_sample):
        """Test negative deltas weigh nothing but still count as samples."""
        processor = CpuSampleProcessor()
        processor.process([make_sample(10.0, ["A"]), make_sample(8.0, ["A"])])
        result = processor.build_result()

        a = child_named(result.call_tree_root, "A")
        assert a.total == 0
        assert a.calls == 2

    def test_unresolved_frames_collapse(self, make_sample):
        """Test runs of unresolved frames become a single Unmanaged Code frame."""
        processor = CpuSampleProcessor()
        processor.process([make_sample(0.0, ["", None, "Work", "Main"])])
        result = processor.build_result()

        work = child_named(child_named(result.call_tree_root, "Main"), "Work")
        unmanaged = child_named(work, "Unmanaged Code")
        assert unmanaged.children == {}

    def test_flat_function_aggregates(self, make_sample):
        """Test per-frame aggregates are ordered by time."""
        processor = CpuSampleProcessor()
        processor.process([
            make_sample(0.0, ["Work", "Main"]),
            make_sample(3.0, ["Work", "Main"]),
            make_sample(4.0, ["Main"]),
        ])
        result = processor.build_result()

        assert [sample['name'] for sample in result.all_functions] == ["Main", "Work"]
        assert result.function("Main")['calls'] == 3
        assert result.function("Work")['time_ms'] == pytest.approx(3.0)

    def test_samples_without_stack_are_ignored(self, make_event, make_sample):
        """Test stackless sample events and other providers are skipped."""
        processor = CpuSampleProcessor()
        handled = processor.process([
            make_event('Thread/Sample', provider='Microsoft-DotNETCore-SampleProfiler', timestamp_ms=1.0),
            make_event('Other', provider='Some-Provider', stack=["A"]),
            make_sample(2.0, ["A"]),
        ])
        assert handled == 1

    def test_no_samples_is_empty(self, make_event):
        """Test a trace without samples yields an EmptyProfile."""
        processor = CpuSampleProcessor()
        processor.process([make_event('GC/AllocationTick', stack=["A"], AllocationAmount64=10, TypeName="T")])
        result = processor.build_result()

        assert isinstance(result, EmptyProfile)
        assert not result
        assert "No CPU samples" in result.reason


class TestCpuOverlays:
    """Tests for allocation and exception overlays on the CPU tree."""

    def test_allocation_overlay(self, make_sample, make_event):
        """Test allocations are added to every frame of the allocating stack."""
        processor = CpuSampleProcessor()
        processor.process([
            make_sample(0.0, ["Work", "Main"]),
            make_event('GC/AllocationTick', stack=["Work", "Main"], AllocationAmount64=100, TypeName="System.String"),
            make_event('GC/AllocationTick', stack=["Main"], AllocationAmount64=20, TypeName="System.Byte[]"),
        ])
        result = processor.build_result()

        root = result.call_tree_root
        main = child_named(root, "Main")
        work = child_named(main, "Work")
        assert root.allocation_bytes == 120
        assert main.allocation_by_type == {"System.String": 100, "System.Byte[]": 20}
        assert work.allocation_by_type == {"System.String": 100}
        assert work.allocation_count_by_type == {"System.String": 1}

    def test_exception_overlay(self, make_sample, make_event):
        """Test thrown exceptions are added to every frame of the throwing stack."""
        processor = CpuSampleProcessor()
        processor.process([
            make_sample(0.0, ["Main"]),
            make_event('Exception/Start', stack=["Parse", "Main"], ExceptionType="System.FormatException"),
        ])
        result = processor.build_result()

        main = child_named(result.call_tree_root, "Main")
        parse = child_named(main, "Parse")
        assert result.call_tree_root.exception_count == 1
        assert main.exception_by_type == {"System.FormatException": 1}
        assert parse.exception_by_type == {"System.FormatException": 1}
        assert parse.calls == 0

    def test_dynamic_throw_ignored_after_typed(self, make_sample, make_event):
        """Test dynamic throw events are dropped once a typed throw was seen."""
        processor = CpuSampleProcessor()
        processor.process([
            make_sample(0.0, ["Main"]),
            make_event('ExceptionThrown_V1', stack=["Main"], ExceptionType="E"),
            make_event('Exception/Start', stack=["Main"], ExceptionType="E"),
            make_event('ExceptionThrown_V1', stack=["Main"], ExceptionType="E"),
        ])
        result = processor.build_result()

        assert child_named(result.call_tree_root, "Main").exception_by_type == {"E": 2}
