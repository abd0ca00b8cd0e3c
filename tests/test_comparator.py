"""
Tests for dataset comparison
"""

import json
import logging
import warnings

import pytest

from tabdiff import (
    ComparisonError,
    ComparisonResult,
    Dataset,
    DatasetComparator,
    ModifiedRow,
    SuggestionType,
    are_datasets_equal,
    available_key_columns,
    compare_datasets,
    diff_rows,
    parse_csv,
    quick_diff,
)


@pytest.fixture
def sample_datasets():
    """The Ana/Bob/Cara scenario"""
    dataset_a = parse_csv("id,name,age\n1,Ana,30\n2,Bob,25", "a.csv")
    dataset_b = parse_csv("id,name,age\n1,Ana,31\n3,Cara,40", "b.csv")
    return dataset_a, dataset_b


@pytest.fixture
def larger_datasets():
    dataset_a = parse_csv(
        "id,name,age,city\n1,Alice,25,NY\n2,Bob,30,LA\n3,Charlie,35,Chicago\n4,David,40,Miami",
        "before.csv"
    )
    dataset_b = parse_csv(
        "id,name,age,city\n1,Alice,26,NY\n2,Bob,30,LA\n3,Charlie,35,Chicago\n5,Eve,28,Seattle\n6,Frank,50,Austin",
        "after.csv"
    )
    return dataset_a, dataset_b


class TestDiffRows:
    """Tests for field-level differences"""

    def test_no_differences(self):
        row = {"id": 1, "name": "Ana"}
        assert diff_rows(row, dict(row), ["id", "name"]) == []

    def test_differences_in_header_order(self):
        row_a = {"id": 1, "name": "Ana", "age": 30}
        row_b = {"id": 1, "name": "Anna", "age": 31}
        assert diff_rows(row_a, row_b, ["age", "id", "name"]) == ["age", "name"]

    def test_type_sensitive(self):
        assert diff_rows({"a": 5}, {"a": "5"}, ["a"]) == ["a"]

    def test_int_and_float_are_same_number(self):
        assert diff_rows({"a": 5}, {"a": 5.0}, ["a"]) == []

    def test_missing_fields(self):
        assert diff_rows({"a": 1}, {}, ["a"]) == ["a"]
        assert diff_rows({}, {}, ["a"]) == []


class TestDatasetComparator:
    """Tests for the DatasetComparator class"""

    def test_scenario(self, sample_datasets):
        """Test the documented Ana/Bob/Cara comparison"""
        dataset_a, dataset_b = sample_datasets
        result = DatasetComparator().compare(dataset_a, dataset_b, key_column="id")

        assert isinstance(result, ComparisonResult)
        assert result.identical == ()
        assert len(result.modified) == 1
        mod = result.modified[0]
        assert isinstance(mod, ModifiedRow)
        assert mod.original == {"id": 1, "name": "Ana", "age": 30}
        assert mod.current == {"id": 1, "name": "Ana", "age": 31}
        assert mod.differences == ["age"]
        assert mod.row_index == 0
        assert result.added == ({"id": 3, "name": "Cara", "age": 40},)
        assert result.deleted == ({"id": 2, "name": "Bob", "age": 25},)

    def test_scenario_suggestions(self, sample_datasets):
        dataset_a, dataset_b = sample_datasets
        result = compare_datasets(dataset_a, dataset_b, key_column="id")

        types = [s.type for s in result.suggestions]
        assert types == [SuggestionType.UPDATE, SuggestionType.ADD, SuggestionType.DELETE]
        update = result.suggestions[0]
        assert update.field == "age"
        assert update.original_value == 30
        assert update.suggested_value == 31
        assert update.row_index == 0
        assert update.confidence == pytest.approx(1 - 1 / 30.5)
        assert [s.confidence for s in result.suggestions[1:]] == [0.8, 0.7]

    def test_compare_with_itself(self, larger_datasets):
        """Test that a dataset compared with itself is entirely identical"""
        dataset_a, _ = larger_datasets
        result = compare_datasets(dataset_a, dataset_a, key_column="name")

        assert result.modified == ()
        assert result.added == ()
        assert result.deleted == ()
        assert result.suggestions == ()
        assert result.identical == dataset_a.rows
        assert result.has_changes() == False

    def test_complementary(self, larger_datasets):
        """Test that swapping the datasets swaps added and deleted"""
        dataset_a, dataset_b = larger_datasets
        forward = compare_datasets(dataset_a, dataset_b, key_column="id")
        backward = compare_datasets(dataset_b, dataset_a, key_column="id")

        assert forward.added == backward.deleted
        assert forward.deleted == backward.added
        assert len(forward.modified) == len(backward.modified) == 1
        assert forward.modified[0].original == backward.modified[0].current
        assert forward.modified[0].current == backward.modified[0].original

    def test_order_follows_datasets(self, larger_datasets):
        dataset_a, dataset_b = larger_datasets
        result = compare_datasets(dataset_a, dataset_b, key_column="id")

        assert [row["id"] for row in result.identical] == [2, 3]
        assert [row["id"] for row in result.added] == [5, 6]
        assert [row["id"] for row in result.deleted] == [4]

    def test_default_key_is_first_header(self, sample_datasets):
        dataset_a, dataset_b = sample_datasets
        result = compare_datasets(dataset_a, dataset_b)
        assert result.key_column == "id"
        assert len(result.modified) == 1

    def test_default_key_falls_back_to_second_dataset(self):
        empty = Dataset(id="e", name="empty.csv", headers=(), rows=())
        other = parse_csv("code,value\nA,1", "other.csv")
        result = compare_datasets(empty, other)

        assert result.key_column == "code"
        assert result.added == ({"code": "A", "value": 1},)

    def test_no_key_column(self):
        empty_a = Dataset(id="a", name="a.csv", headers=(), rows=())
        empty_b = Dataset(id="b", name="b.csv", headers=(), rows=())
        with pytest.raises(ComparisonError):
            compare_datasets(empty_a, empty_b)

    def test_other_key_column(self, sample_datasets):
        """Test aligning on a non-unique-looking column"""
        dataset_a, dataset_b = sample_datasets
        result = compare_datasets(dataset_a, dataset_b, key_column="name")

        assert [row["name"] for row in result.deleted] == ["Bob"]
        assert [row["name"] for row in result.added] == ["Cara"]
        assert result.modified[0].differences == ["age"]

    def test_key_values_align_across_number_formats(self):
        dataset_a = parse_csv("id,name\n1,Ana", "a.csv")
        dataset_b = parse_csv("id,name\n1.0,Ana", "b.csv")
        result = compare_datasets(dataset_a, dataset_b, key_column="id")
        assert len(result.identical) == 1

    def test_key_column_choice_is_logged(self, sample_datasets, caplog):
        dataset_a, dataset_b = sample_datasets
        with caplog.at_level(logging.DEBUG, logger="tabdiff.comparator"):
            compare_datasets(dataset_a, dataset_b)
        assert "Using key column 'id'" in caplog.text

    def test_very_long_numbers_compare_as_text(self):
        dataset_a = parse_csv("id,n\n1,1" + "0" * 400, "a.csv")
        dataset_b = parse_csv("id,n\n1,2" + "0" * 400, "b.csv")
        result = compare_datasets(dataset_a, dataset_b, key_column="id")

        assert result.modified[0].differences == ["n"]
        assert result.suggestions[0].confidence == pytest.approx(400 / 401)

    def test_non_ascii_digits_do_not_match_numeric_keys(self):
        dataset_a = parse_csv("id,name\n1,Ana", "a.csv")
        dataset_b = parse_csv("id,name\n\u0661,Ana", "b.csv")
        result = compare_datasets(dataset_a, dataset_b, key_column="id")

        assert result.identical == ()
        assert len(result.added) == len(result.deleted) == 1

    def test_type_change_is_a_modification(self):
        dataset_a = parse_csv("id,code\n1,5", "a.csv")
        dataset_b = parse_csv("id,code\n1,5a", "b.csv")
        result = compare_datasets(dataset_a, dataset_b, key_column="id")

        assert result.modified[0].differences == ["code"]
        assert result.suggestions[0].confidence == 0.5

    def test_duplicate_keys_last_wins(self):
        """Test that the last duplicate is compared and the first index reported"""
        dataset_a = parse_csv("id,v\n1,a\n2,b\n1,c", "a.csv")
        dataset_b = parse_csv("id,v\n1,d\n2,b", "b.csv")

        with pytest.warns(UserWarning, match="duplicate key"):
            result = compare_datasets(dataset_a, dataset_b, key_column="id")

        assert result.modified[0].original == {"id": 1, "v": "c"}
        assert result.modified[0].row_index == 0
        assert [row["id"] for row in result.identical] == [2]

    def test_duplicate_warning_can_be_disabled(self):
        dataset_a = parse_csv("id,v\n1,a\n1,b", "a.csv")
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compare_datasets(dataset_a, dataset_a, key_column="id", warn_on_duplicates=False)

    def test_row_index_of_later_row(self, larger_datasets):
        dataset_a, dataset_b = larger_datasets
        dataset_b2 = parse_csv("id,name,age,city\n3,Charlie,36,Chicago", "b2.csv")
        result = compare_datasets(dataset_a, dataset_b2, key_column="id")
        assert result.modified[0].row_index == 2

    def test_inputs_not_mutated(self, sample_datasets):
        dataset_a, dataset_b = sample_datasets
        rows_a = [dict(row) for row in dataset_a.rows]
        compare_datasets(dataset_a, dataset_b, key_column="id")
        assert [dict(row) for row in dataset_a.rows] == rows_a


class TestComparisonResult:
    """Tests for ComparisonResult methods"""

    @pytest.fixture
    def sample_result(self, sample_datasets):
        dataset_a, dataset_b = sample_datasets
        return compare_datasets(dataset_a, dataset_b, key_column="id")

    def test_summary(self, sample_result):
        summary = sample_result.summary
        assert summary["key_column"] == "id"
        assert summary["identical_rows"] == 0
        assert summary["modified_rows"] == 1
        assert summary["added_rows"] == 1
        assert summary["deleted_rows"] == 1
        assert summary["total_cell_changes"] == 1
        assert summary["suggestions"] == 3
        assert summary["identical"] == False

    def test_has_methods(self, sample_result):
        assert sample_result.has_changes() == True
        assert sample_result.has_added_rows() == True
        assert sample_result.has_deleted_rows() == True
        assert sample_result.has_modified_rows() == True

    def test_get_rows(self, sample_result):
        assert sample_result.get_rows("modified") == [
            {"id": 1, "name": "Ana", "age": 30, "_status": "original"},
            {"id": 1, "name": "Ana", "age": 31, "_status": "modified"},
        ]
        assert sample_result.get_rows("identical") == []
        assert sample_result.get_rows("suggestions")[0]["type"] == "update"
        with pytest.raises(ValueError):
            sample_result.get_rows("unknown")

    def test_to_dataframe(self, sample_result):
        df = sample_result.to_dataframe("added")
        assert list(df.columns) == ["id", "name", "age"]
        assert df["name"].iloc[0] == "Cara"

    def test_detailed_modifications(self, sample_result):
        details = sample_result.get_detailed_modifications()
        assert list(details.columns) == ["row_key", "row_index", "column", "old_value", "new_value"]
        assert len(details) == 1
        assert details["row_key"].iloc[0] == "1"
        assert details["old_value"].iloc[0] == 30
        assert details["new_value"].iloc[0] == 31

    def test_to_dict(self, sample_result):
        result_dict = sample_result.to_dict()
        assert set(result_dict) == {"summary", "identical", "modified", "added", "deleted", "suggestions"}
        assert result_dict["modified"][0]["differences"] == ["age"]

    def test_to_json(self, sample_result):
        parsed = json.loads(sample_result.to_json())
        assert parsed["summary"]["added_rows"] == 1
        assert parsed["suggestions"][1]["suggested_value"] == {"id": 3, "name": "Cara", "age": 40}

    def test_export_to_excel(self, sample_result, tmp_path):
        pytest.importorskip("openpyxl")
        import pandas as pd

        path = tmp_path / "result.xlsx"
        sample_result.export_to_excel(str(path))
        sheets = pd.read_excel(path, sheet_name=None)

        assert "Summary" in sheets
        assert "Identical" not in sheets
        assert {"Modified", "Added", "Deleted", "Suggestions", "Detailed_Changes"} <= set(sheets)
        assert len(sheets["Suggestions"]) == 3


class TestConvenienceFunctions:
    """Tests for convenience functions"""

    def test_quick_diff(self, sample_datasets):
        dataset_a, dataset_b = sample_datasets
        summary = quick_diff(dataset_a, dataset_b, key_column="id")
        assert summary == {"identical": 0, "modified": 1, "added": 1, "deleted": 1, "equal": False}

    def test_are_datasets_equal(self, sample_datasets):
        dataset_a, dataset_b = sample_datasets
        copy_a = parse_csv("id,name,age\n1,Ana,30\n2,Bob,25", "copy.csv")

        assert are_datasets_equal(dataset_a, copy_a) == True
        assert are_datasets_equal(dataset_a, dataset_b) == False

    def test_available_key_columns(self):
        dataset_a = parse_csv("id,name,age\n1,Ana,30", "a.csv")
        dataset_b = parse_csv("id,email,name\n1,a@b.c,Ana", "b.csv")
        assert available_key_columns(dataset_a, dataset_b) == ["id", "name", "age", "email"]
