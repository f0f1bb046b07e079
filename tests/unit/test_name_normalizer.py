"""
Unit tests for profile_analyzer.extractors.name_normalizer module.
"""
import pytest
from profile_analyzer.extractors.name_normalizer import (
    NameNormalizer,
    UNMANAGED_CODE,
    build_method_filter,
    is_unmanaged_frame,
    normalize_display_name,
    normalize_match_name,
    normalize_type_name,
)


class TestMethodNames:
    """Tests for method name normalization."""

    def test_local_function_state_machine(self):
        """Test async local function state machines are named after the local function."""
        assert normalize_display_name("Program+<<<Main>$>g__EvaluateAsync|0_2>d.MoveNext") == \
            "StateMachine.EvaluateAsync.MoveNext"

    def test_async_method_state_machine(self):
        """Test async method state machines are named after the method."""
        assert normalize_display_name("Program+<<Main>$>d__0.MoveNext") == "StateMachine.Main.MoveNext"

    def test_lambda_on_regular_type(self):
        """Test lambdas are named after their owning method."""
        assert normalize_display_name("PromiseConstructor.<AttachStatics>b__5_0") == \
            "PromiseConstructor.AttachStatics lambda"

    def test_lambda_in_display_class(self):
        """Test lambdas inside closure classes use the outer declaring type."""
        assert normalize_display_name("MyApp.Worker+<>c__DisplayClass3_0.<Run>b__0") == "Worker.Run lambda"
        assert normalize_display_name("MyApp.Worker+<>c.<Start>b__2_1") == "Worker.Start lambda"

    def test_nested_type_with_parameters(self):
        """Test parameters are stripped and nested types use dots."""
        raw = "Asynkron.JsEngine.Ast.TypedAstEvaluator+TypedFunction.InvokeWithContext2(System.Int32)"
        assert normalize_display_name(raw) == "TypedAstEvaluator.TypedFunction.InvokeWithContext2"

    def test_module_prefix_dropped(self):
        """Test the module prefix before '!' is removed."""
        assert normalize_match_name("System.Private.CoreLib!System.String.Concat(System.String)") == \
            "String.Concat"

    def test_generic_declaring_type(self):
        """Test generic declaring types fold into angle-bracket form."""
        raw = ("System.Collections.Generic.Dictionary`2[System.__Canon,System.__Canon]"
               ".Resize(int32,bool)")
        assert normalize_match_name(raw) == "Dictionary<__Canon,__Canon>.Resize"

    def test_parameters_inside_generic_arguments_are_kept(self):
        """Test a '(' inside a generic argument list is not the parameter cut point."""
        assert NameNormalizer.strip_parameters("Foo[Bar(x)].Run(int)") == "Foo[Bar(x)].Run"

    def test_constructor(self):
        """Test constructors keep their .ctor method name."""
        assert normalize_match_name("MyApp.Widget..ctor()") == "Widget.ctor"

    def test_name_without_type(self):
        """Test a bare method name passes through."""
        assert normalize_match_name("Main") == "Main"

    def test_generic_parameter_references_in_signature(self):
        """Test !!N generic parameter references do not hide the method."""
        raw = ("System.Linq.Enumerable.Select[System.__Canon,System.__Canon]"
               "(class System.Collections.Generic.IEnumerable`1<!!0>,class System.Func`2<!!0,!!1>)")
        assert is_unmanaged_frame(raw) == False
        assert normalize_display_name(raw).startswith("Enumerable.Select")

    def test_module_prefix_with_generic_signature(self):
        """Test the module prefix is still dropped when the signature holds !!N."""
        raw = "System.Linq!System.Linq.Enumerable.ToList(class System.Collections.Generic.IEnumerable`1<!!0>)"
        assert normalize_match_name(raw) == "Enumerable.ToList"


class TestUnmanagedFrames:
    """Tests for unmanaged and symbol-less frame detection."""

    @pytest.mark.parametrize("raw", [
        "UNMANAGED_CODE_TIME",
        "UNMANAGED_CODE_TIME (Native Frames)",
        "0)",
        "0[]&,int32)",
        "0&,unsigned int)",
        "",
        "   ",
        None,
    ])
    def test_normalizes_to_unmanaged_code(self, raw):
        """Test sentinels and fragments all become 'Unmanaged Code'."""
        assert normalize_display_name(raw) == UNMANAGED_CODE
        assert normalize_match_name(raw) == UNMANAGED_CODE

    def test_managed_names_are_not_unmanaged(self):
        """Test ordinary names are not flagged."""
        assert is_unmanaged_frame("MyApp.Run") == False
        assert is_unmanaged_frame("<Module>.Init") == False
        assert is_unmanaged_frame("_Private.Helper") == False

    def test_unmanaged_sentinel_is_case_insensitive(self):
        """Test the sentinel text is matched case-insensitively."""
        assert is_unmanaged_frame("unmanaged code") == True


class TestTypeNames:
    """Tests for type name normalization."""

    def test_generic_dictionary(self):
        """Test generic arity markers and namespaces are removed."""
        assert normalize_type_name("System.Collections.Generic.Dictionary`2[System.String,System.Int32]") == \
            "Dictionary<String,Int32>"

    def test_array(self):
        """Test single-dimension arrays keep their brackets."""
        assert normalize_type_name("System.String[]") == "String[]"

    def test_multi_dimensional_array(self):
        """Test array rank commas are preserved."""
        assert normalize_type_name("System.Int32[,]") == "Int32[,]"

    def test_nested_generic(self):
        """Test generics nested inside generic arguments."""
        raw = "System.Collections.Generic.List`1[System.Collections.Generic.KeyValuePair`2[System.String,System.Object]]"
        assert normalize_type_name(raw) == "List<KeyValuePair<String,Object>>"

    def test_blank_type_is_unknown(self):
        """Test blank type names become 'Unknown'."""
        assert normalize_type_name("") == "Unknown"
        assert normalize_type_name(None) == "Unknown"


class TestIdempotence:
    """Normalizing an already normalized name returns it unchanged."""

    @pytest.mark.parametrize("raw", [
        "MyApp.Run",
        "Program.Main",
        "Main",
        "Program+<<<Main>$>g__EvaluateAsync|0_2>d.MoveNext",
        "Program+<<Main>$>d__0.MoveNext",
        "PromiseConstructor.<AttachStatics>b__5_0",
        "System.Collections.Generic.List`1[System.Int32].ToArray()",
        "System.Collections.Generic.Dictionary`2[System.__Canon,System.__Canon].Resize(int32)",
        "System.Buffer.BulkMoveWithWriteBarrier(uint8&,uint8&,native uint)",
        "UNMANAGED_CODE_TIME",
    ])
    def test_display_name_is_idempotent(self, raw):
        """Test display names are fixed points of normalization."""
        once = normalize_display_name(raw)
        assert normalize_display_name(once) == once

    @pytest.mark.parametrize("raw", [
        "System.Collections.Generic.Dictionary`2[System.String,System.Int32]",
        "System.String[]",
        "System.Int32[,]",
        "Unknown",
    ])
    def test_type_name_is_idempotent(self, raw):
        """Test type names are fixed points of normalization."""
        once = normalize_type_name(raw)
        assert normalize_type_name(once) == once


class TestBuildMethodFilter:
    """Tests for Type:Method filter strings."""

    def test_splits_at_last_dot(self):
        """Test the filter separates type and method."""
        assert build_method_filter("MyApp.Parser.Parse(System.String)") == "MyApp.Parser:Parse"

    def test_nested_types_use_dots(self):
        """Test nested type separators become dots."""
        assert build_method_filter("MyApp.Outer+Inner.Run()") == "MyApp.Outer.Inner:Run"

    def test_name_without_type(self):
        """Test names without a dot are returned as-is."""
        assert build_method_filter("Main") == "Main"
