"""Tabular loader unit tests."""

import pytest

from inkora.models.template import TextBox
from inkora.services.tabular_loader import auto_map_fields, load_csv
from inkora.utils.exceptions import EmptyOrOversizedInputError


class TestLoadCsv:
    """CSV parsing."""

    def test_should_parse_headers_and_rows(self):
        data = load_csv(b"Name,Phone\nAsha Rao,9876543210\nVikram Iyer,8765432109\n")

        assert data.headers == ["Name", "Phone"]
        assert data.row_count == 2
        assert data.rows[0] == {"Name": "Asha Rao", "Phone": "9876543210"}

    def test_should_strip_utf8_bom(self):
        data = load_csv(b"\xef\xbb\xbfName\nAsha\n")
        assert data.headers == ["Name"]

    def test_should_handle_quoted_values(self):
        data = load_csv(b'Name,Address\n"Rao, Asha","12 MG Road"\n')
        assert data.rows[0]["Name"] == "Rao, Asha"

    def test_should_drop_blank_rows(self):
        data = load_csv(b"Name,Phone\nAsha,1\n,\n\nVikram,2\n")
        assert [row["Name"] for row in data.rows] == ["Asha", "Vikram"]

    def test_should_fill_missing_cells(self):
        data = load_csv(b"Name,Phone\nAsha\n")
        assert data.rows[0] == {"Name": "Asha", "Phone": ""}

    def test_should_read_from_path(self, tmp_path):
        path = tmp_path / "guests.csv"
        path.write_text("Name\nAsha\n", encoding="utf-8")

        assert load_csv(path).rows == [{"Name": "Asha"}]

    @pytest.mark.parametrize("content", [b"", b"Name,Phone\n", b"Name\n,\n"])
    def test_should_reject_empty_input(self, content):
        with pytest.raises(EmptyOrOversizedInputError):
            load_csv(content)

    def test_should_reject_too_many_rows(self):
        with pytest.raises(EmptyOrOversizedInputError) as exc_info:
            load_csv(b"Name\nA\nB\nC\n", max_rows=2)
        assert "Maximum 2 rows" in exc_info.value.message

    def test_should_reject_large_file_before_parsing(self, tmp_path):
        path = tmp_path / "big.csv"
        path.write_bytes(b"Name\n" + b"x\n" * 100)

        with pytest.raises(EmptyOrOversizedInputError):
            load_csv(path, max_bytes=50)

    def test_should_use_size_limit_from_settings(self, monkeypatch):
        monkeypatch.setenv("INKORA_MAX_CSV_BYTES", "10")

        with pytest.raises(EmptyOrOversizedInputError) as exc_info:
            load_csv(b"Name\nAsha Rao\nVikram Iyer\n")
        assert "File too large" in exc_info.value.message

    def test_should_use_row_limit_from_settings(self, monkeypatch):
        monkeypatch.setenv("INKORA_MAX_ROWS", "1")

        with pytest.raises(EmptyOrOversizedInputError) as exc_info:
            load_csv(b"Name\nAsha Rao\nVikram Iyer\n")
        assert "Maximum 1 rows" in exc_info.value.message

    def test_should_prefer_explicit_limits(self, monkeypatch):
        monkeypatch.setenv("INKORA_MAX_CSV_BYTES", "10")

        data = load_csv(b"Name\nAsha Rao\n", max_bytes=1024)
        assert data.row_count == 1


class TestAutoMapFields:
    """Header to field matching."""

    def test_should_match_case_insensitively(self, template):
        template.add_text_box(TextBox(id="text_a", field_name="Name"))
        template.add_text_box(TextBox(id="text_b", field_name="Venue"))

        mapping = auto_map_fields(template, ["name", "Phone"])

        assert mapping == {"text_a": "name"}

    def test_should_use_first_matching_header(self, template):
        template.add_text_box(TextBox(id="text_a", field_name="Name"))

        assert auto_map_fields(template, ["NAME", "name"]) == {"text_a": "NAME"}
