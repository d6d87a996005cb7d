"""号码解析与序列化测试"""

import pytest
from checknumber.inputs import parse_numbers, read_numbers, serialize_batch


class TestParseNumbers:
    def test_text(self):
        text = "+1234567890\n\n  +9876543210  \r\n+1122334455\n"
        assert parse_numbers(text) == ["+1234567890", "+9876543210", "+1122334455"]

    def test_iterable(self):
        assert parse_numbers(["+1\n", " ", "+2"]) == ["+1", "+2"]

    def test_format_not_validated(self):
        """不校验号码格式"""
        assert parse_numbers("abc\n12") == ["abc", "12"]


class TestReadNumbers:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "numbers.txt"
        path.write_bytes("+1234567890\r\n\n  +9876543210\n".encode("utf-8"))
        assert read_numbers(path) == ["+1234567890", "+9876543210"]

    def test_accepts_str_path(self, tmp_path):
        path = tmp_path / "numbers.txt"
        path.write_text("+1\n")
        assert read_numbers(str(path)) == ["+1"]

    def test_blank_file(self, tmp_path):
        path = tmp_path / "blank.txt"
        path.write_text("\n  \n")
        assert read_numbers(path) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_numbers(tmp_path / "absent.txt")


class TestSerializeBatch:
    def test_newline_joined(self):
        assert serialize_batch(["+1234567890", "+9876543210"]) == b"+1234567890\n+9876543210"

    def test_order_preserved(self):
        assert serialize_batch(("3", "1", "2")) == b"3\n1\n2"

    def test_empty_batch_rejected(self):
        with pytest.raises(ValueError):
            serialize_batch([])

    @pytest.mark.parametrize("batch", [["+1", ""], ["  "]])
    def test_blank_number_rejected(self, batch):
        with pytest.raises(ValueError):
            serialize_batch(batch)

    def test_plain_string_rejected(self):
        """单个字符串不是批次"""
        with pytest.raises(ValueError):
            serialize_batch("+1234567890")
