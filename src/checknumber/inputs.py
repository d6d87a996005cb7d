"""输入批次处理 -- 号码文本解析与序列化

不校验号码格式，只保证每个号码为非空字符串。
"""

import os
from collections.abc import Iterable, Sequence
from pathlib import Path


def parse_numbers(lines: str | Iterable[str]) -> list[str]:
    """按行解析号码，去除首尾空白并跳过空行"""
    if isinstance(lines, str):
        lines = lines.splitlines()
    return [line.strip() for line in lines if line.strip()]


def read_numbers(path: str | os.PathLike) -> list[str]:
    """读取号码文件（UTF-8，每行一个号码）

    Raises:
        FileNotFoundError: 文件不存在
    """
    return parse_numbers(Path(path).read_text(encoding="utf-8"))


def serialize_batch(batch: Sequence[str]) -> bytes:
    """将号码批次序列化为换行分隔的上传内容

    Raises:
        ValueError: 批次为空或包含空号码
    """
    if isinstance(batch, str):
        raise ValueError("batch 必须是号码序列，而不是单个字符串")
    if not batch:
        raise ValueError("号码批次为空")
    for index, number in enumerate(batch):
        if not number or not number.strip():
            raise ValueError(f"第 {index + 1} 个号码为空")
    return "\n".join(batch).encode("utf-8")
